"""IFD excision -- compute IFD byte spans and splice them out of a buffer.

An IFD is treated as an opaque block::

    count(2) | count x entry(12) | next IFD offset(4)

Nothing inside the entries is interpreted.  Removal always builds a new
``bytes`` object; the input buffer is only ever read.
"""

import logging
import struct
from typing import Iterator, List, Optional, Tuple

from exifstrip.config import DEFAULT_MAX_IFDS
from exifstrip.errors import (
    ChainOutOfBoundsError,
    IFDOutOfBoundsError,
    TruncatedIFDError,
)

logger = logging.getLogger(__name__)

TAG_COUNT_SIZE = 2
TAG_SIZE = 12
NEXT_IFD_OFFSET_SIZE = 4


class IFDSpan:
    """Byte range occupied by one IFD."""
    __slots__ = ('offset', 'tag_count', 'next_ifd_offset')

    def __init__(self, offset: int, tag_count: int, next_ifd_offset: int):
        self.offset = offset
        self.tag_count = tag_count
        self.next_ifd_offset = next_ifd_offset

    @property
    def length(self) -> int:
        return ifd_length(self.tag_count)

    @property
    def end(self) -> int:
        return self.offset + self.length

    def __repr__(self):
        return (f'IFDSpan(offset={self.offset}, tag_count={self.tag_count}, '
                f'length={self.length}, next_ifd_offset={self.next_ifd_offset})')


def ifd_length(tag_count: int) -> int:
    """Total IFD size in bytes for ``tag_count`` entries."""
    return TAG_COUNT_SIZE + tag_count * TAG_SIZE + NEXT_IFD_OFFSET_SIZE


def read_ifd_span(buffer: bytes, ifd_offset: int, endian: str) -> IFDSpan:
    """Read the tag count at ``ifd_offset`` and bounds-check the whole IFD.

    Raises:
        TruncatedIFDError: the tag count itself cannot be read.
        IFDOutOfBoundsError: the computed IFD extends past the buffer.
    """
    if ifd_offset < 0:
        raise TruncatedIFDError('negative IFD offset', offset=ifd_offset)
    data = buffer[ifd_offset:ifd_offset + TAG_COUNT_SIZE]
    if len(data) < TAG_COUNT_SIZE:
        raise TruncatedIFDError('cannot read IFD tag count', offset=ifd_offset,
                                expected=TAG_COUNT_SIZE, found=len(data))
    # Unsigned; a 16-bit count tops out at 65535 * 12 bytes of entries
    tag_count = struct.unpack(endian + 'H', data)[0]

    end = ifd_offset + ifd_length(tag_count)
    if end > len(buffer):
        raise IFDOutOfBoundsError(
            f'IFD with {tag_count} tag(s) runs past end of buffer',
            offset=ifd_offset, expected=f'end <= {len(buffer)}', found=end)

    next_offset = struct.unpack(
        endian + 'I', buffer[end - NEXT_IFD_OFFSET_SIZE:end])[0]
    return IFDSpan(ifd_offset, tag_count, next_offset)


def iter_ifd_spans(buffer: bytes, ifd_offset: int, endian: str,
                   tiff_offset: Optional[int] = None,
                   max_ifds: int = DEFAULT_MAX_IFDS,
                   log: Optional[logging.Logger] = None) -> Iterator[IFDSpan]:
    """Walk an IFD chain read-only, yielding each span in chain order.

    Next-IFD offsets are TIFF-relative when ``tiff_offset`` is given and
    absolute otherwise.  The chain must end with a zero offset; running
    past the buffer, revisiting an IFD or exceeding ``max_ifds`` raises
    ChainOutOfBoundsError.
    """
    log = log or logger
    seen = set()
    offset = ifd_offset

    while True:
        if offset in seen:
            raise ChainOutOfBoundsError('IFD chain loops back on itself',
                                        offset=offset)
        if len(seen) >= max_ifds:
            raise ChainOutOfBoundsError(
                f'IFD chain longer than {max_ifds} directories', offset=offset)
        seen.add(offset)

        span = read_ifd_span(buffer, offset, endian)
        log.debug('IFD at %d: %d tag(s), next IFD offset %d',
                  span.offset, span.tag_count, span.next_ifd_offset)
        yield span

        if span.next_ifd_offset == 0:
            return
        offset = span.next_ifd_offset
        if tiff_offset is not None:
            offset += tiff_offset
        if offset >= len(buffer):
            raise ChainOutOfBoundsError('next IFD offset past end of buffer',
                                        offset=span.end - NEXT_IFD_OFFSET_SIZE,
                                        expected=f'< {len(buffer)}', found=offset)


def merge_ranges(ranges: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Sort ``(start, end)`` ranges and coalesce any that overlap or touch."""
    merged: List[Tuple[int, int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def splice_out(buffer: bytes, ranges: List[Tuple[int, int]]) -> bytes:
    """Copy ``buffer`` once, skipping every range in ``ranges``."""
    parts = []
    pos = 0
    for start, end in merge_ranges(ranges):
        parts.append(buffer[pos:start])
        pos = end
    parts.append(buffer[pos:])
    return b''.join(parts)


def collect_ifd_spans(buffer: bytes, ifd_offset: int, endian: str,
                      follow_chain: bool = False,
                      tiff_offset: Optional[int] = None,
                      max_ifds: int = DEFAULT_MAX_IFDS,
                      log: Optional[logging.Logger] = None) -> List[IFDSpan]:
    """Validate and return the IFD span(s) to remove, reading only.

    Only the IFD at ``ifd_offset`` is returned unless ``follow_chain`` is
    set, in which case every IFD linked after it is included too.
    """
    log = log or logger
    if follow_chain:
        return list(iter_ifd_spans(buffer, ifd_offset, endian, tiff_offset,
                                   max_ifds, log))
    span = read_ifd_span(buffer, ifd_offset, endian)
    log.debug('the number of tags is: %d', span.tag_count)
    return [span]


def remove_spans(buffer: bytes, spans: List[IFDSpan],
                 log: Optional[logging.Logger] = None) -> bytes:
    """Return a new buffer without the bytes of ``spans``."""
    log = log or logger
    log.debug('Removing %d IFD(s), %d byte(s)', len(spans),
              sum(s.length for s in spans))
    return splice_out(bytes(buffer), [(s.offset, s.end) for s in spans])


def excise(buffer: bytes, ifd_offset: int, endian: str,
           log: Optional[logging.Logger] = None) -> bytes:
    """Remove the single IFD at ``ifd_offset`` and return the new buffer."""
    spans = collect_ifd_spans(buffer, ifd_offset, endian, log=log)
    return remove_spans(buffer, spans, log)


def excise_chain(buffer: bytes, ifd_offset: int, endian: str,
                 tiff_offset: Optional[int] = None,
                 max_ifds: int = DEFAULT_MAX_IFDS,
                 log: Optional[logging.Logger] = None) -> bytes:
    """Remove the IFD at ``ifd_offset`` and every IFD linked after it.

    The whole chain is validated against the original buffer before
    anything is copied, so a bad link anywhere yields no output at all.
    """
    spans = collect_ifd_spans(buffer, ifd_offset, endian, True, tiff_offset,
                              max_ifds, log)
    return remove_spans(buffer, spans, log)
