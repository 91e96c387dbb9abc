"""APP1/EXIF header locator -- stdlib only (struct module).

Finds the first APP1 marker in a JPEG byte stream, validates the ``Exif``
identifier and the TIFF sub-header that follows it, and resolves the
offset of the first IFD.

Layout of the bytes being parsed::

    FF E1 | LL LL | 'E' 'x' 'i' 'f' 00 00 | BO BO | 00 2A | OO OO OO OO | IFD...
    marker  length  identifier              TIFF header (byte order, magic, offset)
"""

import logging
import struct
from typing import Optional, Tuple

from exifstrip.config import OffsetMode, StripConfig
from exifstrip.errors import (
    InvalidExifIdentifierError,
    InvalidTiffMagicError,
    MarkerNotFoundError,
    SegmentLengthViolationError,
    TruncatedHeaderError,
    UnknownByteOrderError,
)

logger = logging.getLogger(__name__)

APP1_MARKER = b'\xff\xe1'
EXIF_IDENT = b'Exif\x00\x00'
TIFF_MAGIC = 42

# Byte order marker -> struct prefix
BYTE_ORDERS = {b'II': '<', b'MM': '>'}

# marker(2) + length(2) + identifier(6) + byte order(2) + magic(2) + offset(4)
MIN_HEADER_SIZE = 18

# Size of the TIFF header; an offset of 8 means "IFD follows the header"
TIFF_HEADER_SIZE = 8


class ExifLocation:
    """Where the EXIF block and its first IFD live inside a JPEG buffer."""
    __slots__ = ('marker_offset', 'segment_length', 'tiff_offset', 'endian',
                 'raw_ifd_offset', 'ifd_offset')

    def __init__(self, marker_offset: int, segment_length: int,
                 tiff_offset: int, endian: str, raw_ifd_offset: int,
                 ifd_offset: int):
        self.marker_offset = marker_offset
        self.segment_length = segment_length
        self.tiff_offset = tiff_offset
        self.endian = endian
        self.raw_ifd_offset = raw_ifd_offset
        self.ifd_offset = ifd_offset

    @property
    def byte_order(self) -> str:
        return 'II' if self.endian == '<' else 'MM'

    @property
    def data_length(self) -> int:
        """Declared segment payload size, excluding the length field itself."""
        return self.segment_length - 2

    @property
    def segment_end(self) -> int:
        """Absolute end of the APP1 segment according to its length field."""
        return self.marker_offset + 2 + self.segment_length

    def as_tuple(self) -> Tuple[int, str]:
        return self.ifd_offset, self.endian

    def __repr__(self):
        return (f'ExifLocation(marker_offset={self.marker_offset}, '
                f'tiff_offset={self.tiff_offset}, byte_order={self.byte_order}, '
                f'ifd_offset={self.ifd_offset})')


def find_app1_marker(buffer: bytes, start: int = 0) -> int:
    """Return the index of the first ``FF E1`` pair at or after ``start``."""
    idx = buffer.find(APP1_MARKER, start)
    if idx < 0:
        raise MarkerNotFoundError('no APP1 marker found',
                                  expected=APP1_MARKER, found=None)
    return idx


def _take(buffer: bytes, pos: int, size: int, limit: Optional[int],
          what: str, short_error=TruncatedHeaderError) -> bytes:
    """Read ``size`` bytes at ``pos`` without ever reading past the buffer."""
    chunk = buffer[pos:pos + size]
    if len(chunk) < size:
        raise short_error(f'truncated {what}', offset=pos,
                          expected=size, found=len(chunk))
    if limit is not None and pos + size > limit:
        raise SegmentLengthViolationError(
            f'{what} extends past the declared APP1 segment', offset=pos,
            expected=limit, found=pos + size)
    return chunk


def resolve_ifd_offset(raw_offset: int, tiff_offset: int,
                       mode: OffsetMode = OffsetMode.LEGACY) -> int:
    """Translate a TIFF-relative IFD offset into an absolute buffer offset."""
    if mode == OffsetMode.RELATIVE:
        return tiff_offset + raw_offset
    if raw_offset == TIFF_HEADER_SIZE:
        return tiff_offset + TIFF_HEADER_SIZE
    return raw_offset


def locate_exif(buffer: bytes, config: Optional[StripConfig] = None,
                log: Optional[logging.Logger] = None) -> ExifLocation:
    """Locate the APP1/EXIF segment and decode its TIFF header.

    Args:
        buffer: Whole file content. Never modified.
        config: Offset policy and segment-length strictness. None uses defaults.
        log: Diagnostic sink. None uses this module's logger.

    Returns:
        ExifLocation with the absolute offset of the first IFD.

    Raises:
        HeaderFormatError subclass describing the first structural violation.
    """
    config = config or StripConfig.default()
    log = log or logger
    if not isinstance(buffer, bytes):
        buffer = bytes(buffer)

    marker_offset = find_app1_marker(buffer)
    log.debug('Found APP1 marker at offset %d', marker_offset)
    pos = marker_offset + 2

    length_bytes = _take(buffer, pos, 2, None, 'APP1 segment length')
    segment_length = struct.unpack('>H', length_bytes)[0]
    log.debug('APP1 segment declares %d bytes', segment_length)

    limit = None
    if config.strict_segment_length:
        if segment_length < 2:
            raise SegmentLengthViolationError(
                'APP1 segment length smaller than its own length field',
                offset=pos, expected='>= 2', found=segment_length)
        limit = pos + segment_length
    pos += 2

    ident = _take(buffer, pos, len(EXIF_IDENT), limit, 'EXIF identifier',
                  short_error=InvalidExifIdentifierError)
    if ident != EXIF_IDENT:
        raise InvalidExifIdentifierError('APP1 segment is not EXIF', offset=pos,
                                         expected=EXIF_IDENT, found=ident)
    pos += len(EXIF_IDENT)

    tiff_offset = pos
    bo = _take(buffer, pos, 2, limit, 'TIFF byte order')
    endian = BYTE_ORDERS.get(bo)
    if endian is None:
        raise UnknownByteOrderError('could not read byte order from TIFF header',
                                    offset=pos, expected=b'II or MM', found=bo)
    pos += 2

    magic = struct.unpack(endian + 'H', _take(buffer, pos, 2, limit, 'TIFF magic'))[0]
    if magic != TIFF_MAGIC:
        raise InvalidTiffMagicError('bad TIFF magic number', offset=pos,
                                    expected=TIFF_MAGIC, found=magic)
    pos += 2

    raw_offset = struct.unpack(endian + 'I',
                               _take(buffer, pos, 4, limit, 'first IFD offset'))[0]
    pos += 4

    ifd_offset = resolve_ifd_offset(raw_offset, tiff_offset, config.offset_mode)
    log.debug('The offset to the EXIF IFD is %d (raw %d, %s)',
              ifd_offset, raw_offset, config.offset_mode.value)

    return ExifLocation(marker_offset, segment_length, tiff_offset, endian,
                        raw_offset, ifd_offset)


def locate(buffer: bytes, config: Optional[StripConfig] = None,
           log: Optional[logging.Logger] = None) -> Tuple[int, str]:
    """Return ``(ifd_offset, endian)`` for the first EXIF IFD in ``buffer``."""
    return locate_exif(buffer, config, log).as_tuple()

