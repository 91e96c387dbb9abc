"""Core strip logic -- in-memory transform, single files, and batch processing.

Supports both sequential and parallel (thread pool) batch processing.
"""

import hashlib
import logging
import os
import shutil
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, Union

from exifstrip.config import OffsetMode, StripConfig
from exifstrip.errors import (
    HeaderFormatError,
    HeaderParseError,
    IFDFormatError,
    IFDRemovalError,
    MarkerNotFoundError,
    StripError,
)
from exifstrip.exif import (
    ExifLocation,
    IFDSpan,
    collect_ifd_spans,
    locate_exif,
    remove_spans,
)
from exifstrip.models import BatchResult, StripResult

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]
BYTES_TYPES = (bytes, bytearray, memoryview)


class StripOutcome:
    """A successful strip: the new bytes plus what was removed."""
    __slots__ = ('data', 'location', 'spans', 'original_size')

    def __init__(self, data: bytes, location: ExifLocation, spans: List[IFDSpan],
                 original_size: int):
        self.data = data
        self.location = location
        self.spans = spans
        self.original_size = original_size

    @property
    def bytes_removed(self) -> int:
        return self.original_size - len(self.data)


def read_input(source: Union[BytesLike, BinaryIO]) -> bytes:
    """Return the whole input as ``bytes``.

    Bytes-like objects are copied; binary streams are read to the end.
    Read errors propagate. A stream that yields anything but bytes, such as
    a text-mode file, raises TypeError.
    """
    if isinstance(source, BYTES_TYPES):
        return bytes(source)
    data = source.read()
    if not isinstance(data, BYTES_TYPES):
        raise TypeError(f'expected a binary stream, read() returned '
                        f'{type(data).__name__}')
    return bytes(data)


def strip_exif(source: Union[BytesLike, BinaryIO],
               config: Optional[StripConfig] = None,
               log: Optional[logging.Logger] = None) -> StripOutcome:
    """Locate the EXIF IFD(s) in ``source`` and remove them.

    Raises:
        HeaderParseError: the APP1/TIFF header could not be parsed.
        IFDRemovalError: the IFD extent is inconsistent with the buffer.
    """
    config = config or StripConfig.default()
    log = log or logger
    raw = read_input(source)

    try:
        location = locate_exif(raw, config, log)
    except HeaderFormatError as e:
        raise HeaderParseError(e) from e

    tiff_offset = (location.tiff_offset
                   if config.offset_mode == OffsetMode.RELATIVE else None)
    try:
        spans = collect_ifd_spans(raw, location.ifd_offset, location.endian,
                                  config.follow_chain, tiff_offset,
                                  config.max_ifds, log)
    except IFDFormatError as e:
        raise IFDRemovalError(e) from e

    result = remove_spans(raw, spans, log)
    log.debug('Successfully removed %d IFD(s) (%d bytes)',
              len(spans), len(raw) - len(result))
    return StripOutcome(result, location, spans, len(raw))


def discard_exif(source: Union[BytesLike, BinaryIO],
                 config: Optional[StripConfig] = None,
                 log: Optional[logging.Logger] = None) -> bytes:
    """Return ``source`` without its EXIF IFD(s).

    The caller's bytes are never modified; a new buffer is returned.
    """
    return strip_exif(source, config, log).data


def discard_exif_stream(source: BinaryIO, output: BinaryIO,
                        config: Optional[StripConfig] = None,
                        log: Optional[logging.Logger] = None) -> int:
    """Strip ``source`` and write the result to ``output``.

    Nothing is written when stripping fails. Returns bytes written.
    """
    result = discard_exif(source, config, log)
    output.write(result)
    return len(result)


def _sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _write_atomic(target: Path, data: bytes, stat_source: Optional[Path] = None):
    """Write ``data`` to ``target`` via a temp file in the same directory.

    Permission bits and timestamps are copied from ``stat_source`` first.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(target.parent), prefix='.' + target.name,
                               suffix='.tmp')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        if stat_source is not None:
            shutil.copystat(str(stat_source), tmp)
        os.replace(tmp, str(target))
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def strip_file(
    filepath: Path,
    output_path: Optional[Path] = None,
    config: Optional[StripConfig] = None,
    verify: bool = True,
    dry_run: bool = False,
) -> StripResult:
    """Strip EXIF from a single JPEG file.

    Args:
        filepath: Path to the source file.
        output_path: If provided, write the stripped copy here (copy mode).
                     If None, strip in-place.
        config: Strip configuration. None uses defaults.
        verify: If True, re-read the written file and check its digest.
        dry_run: If True, compute what would be removed but write nothing.

    Returns:
        StripResult with details of what was done.
    """
    filepath = Path(filepath)
    config = config or StripConfig.default()
    t0 = time.monotonic()

    if output_path is not None:
        mode = "copy"
        target = Path(output_path)
    else:
        mode = "inplace"
        target = filepath

    def elapsed():
        return (time.monotonic() - t0) * 1000

    if not filepath.exists():
        return StripResult(
            source_path=filepath, output_path=target, mode=mode,
            error=f"File not found: {filepath}", error_kind="FileNotFound",
        )

    raw = filepath.read_bytes()

    try:
        outcome = strip_exif(raw, config)
    except StripError as e:
        if isinstance(e.reason, MarkerNotFoundError):
            # Nothing to strip; copy mode still produces an output file
            if mode == "copy" and not dry_run:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(str(filepath), str(target))
            return StripResult(source_path=filepath, output_path=target,
                               mode=mode, strip_time_ms=elapsed())
        return StripResult(source_path=filepath, output_path=target, mode=mode,
                           strip_time_ms=elapsed(), error=str(e),
                           error_kind=e.kind)

    result = StripResult(
        source_path=filepath, output_path=target, mode=mode,
        bytes_removed=outcome.bytes_removed, ifds_removed=len(outcome.spans),
    )

    if dry_run:
        result.strip_time_ms = elapsed()
        return result

    try:
        _write_atomic(target, outcome.data, stat_source=filepath)
    except OSError as e:
        result.error = f"Could not write {target}: {e}"
        result.error_kind = "WriteFailed"
        result.strip_time_ms = elapsed()
        return result

    expected = _sha256(outcome.data)
    if verify:
        result.verified = _sha256(target.read_bytes()) == expected
    result.sha256_after = expected
    result.strip_time_ms = elapsed()
    return result


def collect_jpeg_files(path: Path, extensions=None) -> List[Path]:
    """Collect all JPEG files from a path (file or directory).

    Args:
        path: File or directory to search.
        extensions: Lower-case suffixes to accept. None uses the defaults.
    """
    path = Path(path)
    if path.is_file():
        return [path]

    extensions = extensions or StripConfig.default().extensions
    files = []
    for root, _, filenames in os.walk(path):
        for fname in sorted(filenames):
            if Path(fname).suffix.lower() in extensions:
                files.append(Path(root) / fname)
    files.sort()
    return files


def strip_batch(
    input_path: Path,
    output_dir: Optional[Path] = None,
    config: Optional[StripConfig] = None,
    verify: bool = True,
    dry_run: bool = False,
    progress_callback: Optional[Callable] = None,
    workers: int = 1,
) -> BatchResult:
    """Strip EXIF from a batch of JPEG files.

    Args:
        input_path: File or directory containing JPEG files.
        output_dir: If provided, write stripped copies here (copy mode).
        config: Strip configuration shared by every file.
        verify: Check the digest of every written file.
        dry_run: Compute only, don't write.
        progress_callback: Called with (index, total, filepath, result) after each file.
        workers: Number of parallel workers. 1 = sequential (default).

    Returns:
        BatchResult with summary statistics.
    """
    input_path = Path(input_path)
    config = config or StripConfig.default()
    t0 = time.monotonic()

    files = collect_jpeg_files(input_path, config.extensions)
    total = len(files)

    batch = BatchResult(total_files=total)

    file_pairs = []
    for filepath in files:
        if output_dir is not None:
            relative = filepath.relative_to(input_path) if input_path.is_dir() else filepath.name
            out = Path(output_dir) / relative
        else:
            out = None
        file_pairs.append((filepath, out))

    def process_one(filepath, out):
        try:
            return strip_file(filepath, output_path=out, config=config,
                              verify=verify, dry_run=dry_run)
        except Exception as e:
            logger.exception("strip_file failed for %s", filepath)
            return StripResult(
                source_path=filepath,
                output_path=out or filepath,
                mode="copy" if out else "inplace",
                error=str(e), error_kind=type(e).__name__,
            )

    if workers > 1 and total > 1:
        results = _batch_parallel(file_pairs, process_one, workers,
                                  progress_callback, batch)
    else:
        results = _batch_sequential(file_pairs, process_one,
                                    progress_callback, batch)

    batch.results = results
    batch.total_time_seconds = time.monotonic() - t0
    return batch


def _batch_sequential(
    file_pairs: List,
    process_one: Callable,
    progress_callback: Optional[Callable],
    batch: BatchResult,
) -> List[StripResult]:
    """Process files sequentially."""
    results = []
    total = len(file_pairs)

    for i, (filepath, out) in enumerate(file_pairs):
        result = process_one(filepath, out)
        results.append(result)
        _update_batch_stats(batch, result)

        if progress_callback:
            progress_callback(i + 1, total, filepath, result)

    return results


def _batch_parallel(
    file_pairs: List,
    process_one: Callable,
    workers: int,
    progress_callback: Optional[Callable],
    batch: BatchResult,
) -> List[StripResult]:
    """Process files in parallel using a thread pool.

    Files are processed concurrently but results are collected in
    submission order for deterministic output.
    """
    total = len(file_pairs)
    results = [None] * total
    lock = threading.Lock()
    completed_count = 0

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {}
        for i, (filepath, out) in enumerate(file_pairs):
            future = executor.submit(process_one, filepath, out)
            futures[future] = (i, filepath)

        for future in as_completed(futures):
            index, filepath = futures[future]
            result = future.result()
            results[index] = result

            with lock:
                _update_batch_stats(batch, result)
                completed_count += 1
                if progress_callback:
                    progress_callback(completed_count, total, filepath, result)

    return results


def _update_batch_stats(batch: BatchResult, result: StripResult):
    """Update batch statistics from a single result."""
    if result.error:
        batch.files_errored += 1
    elif result.bytes_removed > 0:
        batch.files_stripped += 1
    else:
        batch.files_already_clean += 1
