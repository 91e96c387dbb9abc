"""Low-level APP1/EXIF binary parser package.

Re-exports the public names of the header locator and the IFD excisor so
callers can ``from exifstrip.exif import X``.
"""

# --- header.py: APP1 marker search, TIFF header decoding ---
from exifstrip.exif.header import (  # noqa: F401
    APP1_MARKER,
    EXIF_IDENT,
    TIFF_MAGIC,
    BYTE_ORDERS,
    MIN_HEADER_SIZE,
    TIFF_HEADER_SIZE,
    ExifLocation,
    find_app1_marker,
    resolve_ifd_offset,
    locate_exif,
    locate,
)

# --- excise.py: IFD spans, chain walking, splicing ---
from exifstrip.exif.excise import (  # noqa: F401
    TAG_COUNT_SIZE,
    TAG_SIZE,
    NEXT_IFD_OFFSET_SIZE,
    IFDSpan,
    ifd_length,
    read_ifd_span,
    iter_ifd_spans,
    merge_ranges,
    splice_out,
    collect_ifd_spans,
    remove_spans,
    excise,
    excise_chain,
)
