"""Exception hierarchy for EXIF parsing and removal.

Format errors describe *what* is wrong with the bytes and carry the offset
plus the expected and found values.  Strip errors tag *which stage* of
``discard_exif`` failed and wrap the underlying format error as ``reason``.
"""

from typing import Optional


class ExifError(Exception):
    """Base class for every error raised by exifstrip."""


class ExifFormatError(ExifError):
    """The buffer violates the JPEG/EXIF/TIFF structure."""
    kind = 'FormatError'

    def __init__(self, message: str, offset: Optional[int] = None,
                 expected: object = None, found: object = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.expected = expected
        self.found = found

    def __str__(self):
        parts = [self.message]
        if self.offset is not None:
            parts.append(f'at offset {self.offset}')
        if self.expected is not None or self.found is not None:
            parts.append(f'(expected {_show(self.expected)}, '
                         f'found {_show(self.found)})')
        return ' '.join(parts)


def _show(value: object) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex(' ').upper() or '<nothing>'
    return repr(value)


# ---------------------------------------------------------------------------
# Header errors
# ---------------------------------------------------------------------------

class HeaderFormatError(ExifFormatError):
    """The APP1 segment or its TIFF sub-header is malformed."""
    kind = 'HeaderFormatError'


class MarkerNotFoundError(HeaderFormatError):
    kind = 'MarkerNotFound'


class InvalidExifIdentifierError(HeaderFormatError):
    kind = 'InvalidExifIdentifier'


class UnknownByteOrderError(HeaderFormatError):
    kind = 'UnknownByteOrder'


class InvalidTiffMagicError(HeaderFormatError):
    kind = 'InvalidTiffMagic'


class TruncatedHeaderError(HeaderFormatError):
    kind = 'TruncatedHeader'


class SegmentLengthViolationError(HeaderFormatError):
    """A header read crossed the APP1 segment's declared length."""
    kind = 'SegmentLengthViolation'


# ---------------------------------------------------------------------------
# IFD errors
# ---------------------------------------------------------------------------

class IFDFormatError(ExifFormatError):
    """The IFD tag table is inconsistent with the buffer."""
    kind = 'IFDFormatError'


class TruncatedIFDError(IFDFormatError):
    kind = 'TruncatedIfd'


class IFDOutOfBoundsError(IFDFormatError):
    kind = 'IfdOutOfBounds'


class ChainOutOfBoundsError(IFDFormatError):
    kind = 'ChainOutOfBounds'


# ---------------------------------------------------------------------------
# Stage tags
# ---------------------------------------------------------------------------

class StripError(ExifError):
    """A ``discard_exif`` stage failed; ``reason`` is the format error."""
    stage = 'strip'

    def __init__(self, reason: ExifFormatError):
        super().__init__(str(reason))
        self.reason = reason

    @property
    def kind(self) -> str:
        return self.reason.kind

    def __str__(self):
        return f'{self.describe()}: {self.reason}'

    def describe(self) -> str:
        return 'EXIF removal failed'


class HeaderParseError(StripError):
    stage = 'header'

    def describe(self) -> str:
        return 'could not parse image headers'


class IFDRemovalError(StripError):
    stage = 'ifd'

    def describe(self) -> str:
        return 'could not remove the EXIF IFD'
