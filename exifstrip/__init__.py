"""exifstrip -- remove EXIF metadata from JPEG files without re-encoding."""

__version__ = "1.0.0"

from exifstrip.config import OffsetMode, StripConfig
from exifstrip.errors import (
    ExifError,
    ExifFormatError,
    HeaderFormatError,
    IFDFormatError,
    MarkerNotFoundError,
    InvalidExifIdentifierError,
    UnknownByteOrderError,
    InvalidTiffMagicError,
    TruncatedHeaderError,
    SegmentLengthViolationError,
    TruncatedIFDError,
    IFDOutOfBoundsError,
    ChainOutOfBoundsError,
    StripError,
    HeaderParseError,
    IFDRemovalError,
)
from exifstrip.models import BatchResult, ScanResult, StripResult
from exifstrip.exif import locate, locate_exif, excise, excise_chain
from exifstrip.stripper import (
    discard_exif,
    discard_exif_stream,
    strip_exif,
    strip_file,
    strip_batch,
)
from exifstrip.scanner import scan_file
from exifstrip.hook import UploadDecision, file_will_be_uploaded
from exifstrip.report import generate_report

__all__ = [
    "__version__",
    "OffsetMode",
    "StripConfig",
    "ExifError",
    "ExifFormatError",
    "HeaderFormatError",
    "IFDFormatError",
    "MarkerNotFoundError",
    "InvalidExifIdentifierError",
    "UnknownByteOrderError",
    "InvalidTiffMagicError",
    "TruncatedHeaderError",
    "SegmentLengthViolationError",
    "TruncatedIFDError",
    "IFDOutOfBoundsError",
    "ChainOutOfBoundsError",
    "StripError",
    "HeaderParseError",
    "IFDRemovalError",
    "ScanResult",
    "StripResult",
    "BatchResult",
    "locate",
    "locate_exif",
    "excise",
    "excise_chain",
    "discard_exif",
    "discard_exif_stream",
    "strip_exif",
    "strip_file",
    "strip_batch",
    "scan_file",
    "UploadDecision",
    "file_will_be_uploaded",
    "generate_report",
]
