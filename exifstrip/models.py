"""Data models for exifstrip scan and strip results."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class ScanResult:
    """Where (and whether) a file carries an EXIF IFD. Read-only."""
    filepath: Path
    has_exif: bool = False
    ifd_offset: Optional[int] = None
    byte_order: Optional[str] = None  # "II" | "MM"
    tag_count: Optional[int] = None
    ifd_length: Optional[int] = None
    file_size: int = 0
    scan_time_ms: float = 0.0
    error: Optional[str] = None


@dataclass
class StripResult:
    """Result of stripping a single file."""
    source_path: Path
    output_path: Path
    mode: str  # "copy" | "inplace"
    bytes_removed: int = 0
    ifds_removed: int = 0
    verified: bool = False
    strip_time_ms: float = 0.0
    sha256_after: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None


@dataclass
class BatchResult:
    """Result of a batch strip run."""
    results: List[StripResult] = field(default_factory=list)
    total_files: int = 0
    files_stripped: int = 0
    files_already_clean: int = 0
    files_errored: int = 0
    total_time_seconds: float = 0.0
    report_path: Optional[Path] = None
