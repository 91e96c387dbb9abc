"""Shared test fixtures -- synthetic JPEG/EXIF byte-stream generators."""

import struct
import pytest


# Reference fixture: one-tag big-endian IFD whose raw offset (0x14) is used
# as an absolute position, followed by a two-byte trailer.
REFERENCE_INPUT = bytes([
    0x00, 0x00,
    0xFF, 0xE1,                                 # APP1 marker
    0x00, 0x0F,                                 # declared segment length
    0x45, 0x78, 0x69, 0x66, 0x00, 0x00,         # 'Exif\0\0'
    0x4D, 0x4D,                                 # 'MM' - big endian
    0x00, 0x2A,                                 # magic 42
    0x00, 0x00, 0x00, 0x14,                     # first IFD offset: 20
    0x00, 0x01,                                 # one tag
    0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00, 0x00,         # 12-byte tag entry
    0x00, 0x00, 0x00, 0x00,                     # next IFD offset: none
    0xFF, 0xFF,
])

REFERENCE_OUTPUT = bytes([
    0x00, 0x00,
    0xFF, 0xE1,
    0x00, 0x0F,
    0x45, 0x78, 0x69, 0x66, 0x00, 0x00,
    0x4D, 0x4D,
    0x00, 0x2A,
    0x00, 0x00, 0x00, 0x14,
    0xFF, 0xFF,
])

REFERENCE_IFD_OFFSET = 20
REFERENCE_IFD_LENGTH = 18

SOI = b'\xff\xd8'
EOI = b'\xff\xd9'

# Stand-in for everything after the APP1 segment: a DQT segment, a scan
# header and some entropy-coded bytes.
IMAGE_BODY = (
    b'\xff\xdb\x00\x05\x00\x01\x02'
    b'\xff\xda\x00\x04\x01\x00'
    + b'\x12\x34\x56\x78' * 4
    + EOI
)

# SOI(2) + marker(2) + length(2) + 'Exif\0\0'(6)
TIFF_START = 12
FIRST_IFD = TIFF_START + 8


def ifd_bytes(tag_count, endian='>', next_offset=0):
    """Build one IFD with ``tag_count`` ASCII-ish entries."""
    out = struct.pack(endian + 'H', tag_count)
    for k in range(tag_count):
        out += struct.pack(endian + 'HHII', 0x010F + k, 2, 4, 0x41424344)
    out += struct.pack(endian + 'I', next_offset)
    return out


def build_exif_jpeg(tag_counts=(2,), endian='>', absolute_links=False,
                    first_offset=8, value_data=b'', body=IMAGE_BODY):
    """Build a JPEG whose APP1 segment holds a chain of IFDs.

    Args:
        tag_counts: Tag count of each IFD, in chain order. IFDs are laid
            out back to back directly after the TIFF header.
        endian: '<' for II, '>' for MM.
        absolute_links: Write next-IFD offsets as absolute file positions
            instead of TIFF-relative ones.
        first_offset: Raw first-IFD offset stored in the TIFF header.
        value_data: Extra bytes appended after the last IFD inside APP1.
        body: Bytes following the APP1 segment.

    Returns:
        bytes: Complete JPEG content.
    """
    bo = b'II' if endian == '<' else b'MM'

    rel_offsets = []
    rel = 8
    for n in tag_counts:
        rel_offsets.append(rel)
        rel += 2 + 12 * n + 4

    base = TIFF_START if absolute_links else 0
    ifds = b''
    for i, n in enumerate(tag_counts):
        nxt = rel_offsets[i + 1] + base if i + 1 < len(tag_counts) else 0
        ifds += ifd_bytes(n, endian, nxt)

    tiff = (bo + struct.pack(endian + 'H', 42)
            + struct.pack(endian + 'I', first_offset) + ifds + value_data)
    payload = b'Exif\x00\x00' + tiff
    app1 = b'\xff\xe1' + struct.pack('>H', len(payload) + 2) + payload
    return SOI + app1 + body


def build_plain_jpeg(body=IMAGE_BODY):
    """A JPEG with a JFIF APP0 segment and no APP1 at all."""
    app0 = b'\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
    return SOI + app0 + body


def ifd_spans(tag_counts):
    """Absolute (start, end) of each IFD produced by build_exif_jpeg."""
    spans = []
    pos = FIRST_IFD
    for n in tag_counts:
        end = pos + 2 + 12 * n + 4
        spans.append((pos, end))
        pos = end
    return spans


@pytest.fixture
def exif_jpeg(tmp_path):
    """A JPEG file with a two-tag big-endian EXIF IFD."""
    fp = tmp_path / 'photo.jpg'
    fp.write_bytes(build_exif_jpeg((2,)))
    return fp


@pytest.fixture
def plain_jpeg(tmp_path):
    """A JPEG file without any APP1 segment."""
    fp = tmp_path / 'plain.jpg'
    fp.write_bytes(build_plain_jpeg())
    return fp


@pytest.fixture
def corrupt_jpeg(tmp_path):
    """A JPEG whose EXIF IFD claims far more tags than the file holds."""
    data = bytearray(build_exif_jpeg((1,)))
    struct.pack_into('>H', data, FIRST_IFD, 0x0800)
    fp = tmp_path / 'corrupt.jpg'
    fp.write_bytes(bytes(data))
    return fp


@pytest.fixture
def jpeg_dir(tmp_path):
    """A directory tree with EXIF, plain and non-JPEG files."""
    root = tmp_path / 'photos'
    (root / 'sub').mkdir(parents=True)
    (root / 'a.jpg').write_bytes(build_exif_jpeg((1,)))
    (root / 'b.JPEG').write_bytes(build_exif_jpeg((3,), endian='<'))
    (root / 'sub' / 'c.jpg').write_bytes(build_plain_jpeg())
    (root / 'notes.txt').write_text('not an image')
    return root
