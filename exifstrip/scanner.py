"""Read-only EXIF detection -- where the header and first IFD sit in a file."""

import time
from pathlib import Path
from typing import Callable, List, Optional

from exifstrip.config import StripConfig
from exifstrip.errors import ExifFormatError, IFDFormatError, MarkerNotFoundError
from exifstrip.exif import locate_exif, read_ifd_span
from exifstrip.models import ScanResult


def scan_bytes(data: bytes, filepath: Path = Path('<bytes>'),
               config: Optional[StripConfig] = None) -> ScanResult:
    """Locate the EXIF header and first IFD in ``data`` without changing it.

    A missing APP1 marker is not an error: the result has ``has_exif=False``.
    Any other structural problem is reported in ``error``.
    """
    t0 = time.monotonic()
    result = ScanResult(filepath=filepath, file_size=len(data))

    try:
        location = locate_exif(data, config)
    except MarkerNotFoundError:
        result.scan_time_ms = (time.monotonic() - t0) * 1000
        return result
    except ExifFormatError as e:
        result.error = str(e)
        result.scan_time_ms = (time.monotonic() - t0) * 1000
        return result

    result.has_exif = True
    result.ifd_offset = location.ifd_offset
    result.byte_order = location.byte_order

    try:
        span = read_ifd_span(data, location.ifd_offset, location.endian)
        result.tag_count = span.tag_count
        result.ifd_length = span.length
    except IFDFormatError as e:
        result.error = str(e)

    result.scan_time_ms = (time.monotonic() - t0) * 1000
    return result


def scan_file(filepath: Path, config: Optional[StripConfig] = None) -> ScanResult:
    """Scan a single file for an EXIF IFD. Read-only operation."""
    filepath = Path(filepath)
    try:
        data = filepath.read_bytes()
    except OSError as e:
        return ScanResult(filepath=filepath, error=str(e))
    return scan_bytes(data, filepath, config)


def scan_batch(
    files: List[Path],
    config: Optional[StripConfig] = None,
    progress_callback: Optional[Callable] = None,
) -> List[ScanResult]:
    """Scan a list of files.

    Args:
        files: Files to scan, e.g. from ``collect_jpeg_files``.
        config: Offset policy used when locating the IFD.
        progress_callback: Called with (index, total, filepath, result) after each file.
    """
    total = len(files)
    results = []
    for i, filepath in enumerate(files):
        result = scan_file(filepath, config)
        results.append(result)
        if progress_callback:
            progress_callback(i + 1, total, filepath, result)
    return results
