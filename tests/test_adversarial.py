"""Adversarial edge-case tests -- truncated, corrupted and hostile inputs.

Every failure must surface as a StripError (or a result value in the
scanner and hook), never as an IndexError, struct.error or similar.
"""

import io
import struct

import pytest

from exifstrip.config import OffsetMode, StripConfig
from exifstrip.errors import ChainOutOfBoundsError, StripError
from exifstrip.hook import file_will_be_uploaded
from exifstrip.scanner import scan_bytes
from exifstrip.stripper import discard_exif
from tests.conftest import FIRST_IFD, REFERENCE_INPUT, build_exif_jpeg

CONFIGS = [
    StripConfig(),
    StripConfig(offset_mode=OffsetMode.RELATIVE, follow_chain=True),
    StripConfig(strict_segment_length=True),
]


def _strip_or_fail(data, config):
    """Return the stripped bytes, or None if the input was rejected."""
    try:
        return discard_exif(data, config)
    except StripError:
        return None


class TestTruncation:
    @pytest.mark.parametrize('config', CONFIGS)
    def test_every_prefix_of_reference(self, config):
        for n in range(len(REFERENCE_INPUT)):
            result = _strip_or_fail(REFERENCE_INPUT[:n], config)
            if result is not None:
                assert len(result) < n

    @pytest.mark.parametrize('config', CONFIGS)
    def test_every_prefix_of_chain(self, config):
        data = build_exif_jpeg((2, 1))
        for n in range(len(data)):
            _strip_or_fail(data[:n], config)

    def test_prefixes_before_ifd_end_fail(self):
        end = FIRST_IFD + 2 + 2 * 12 + 4
        data = build_exif_jpeg((2,), body=b'')
        for n in range(end):
            with pytest.raises(StripError):
                discard_exif(data[:n])

    def test_empty_input(self):
        with pytest.raises(StripError) as exc:
            discard_exif(b'')
        assert exc.value.kind == 'MarkerNotFound'

    def test_marker_at_end(self):
        with pytest.raises(StripError) as exc:
            discard_exif(b'\x00\x00\xff\xe1')
        assert exc.value.kind == 'TruncatedHeader'


class TestCorruption:
    @pytest.mark.parametrize('config', CONFIGS)
    @pytest.mark.parametrize('value', [0x00, 0xFF, 0x80])
    def test_every_single_byte(self, config, value):
        original = build_exif_jpeg((2, 1))
        for i in range(len(original)):
            data = bytearray(original)
            data[i] = value
            result = _strip_or_fail(bytes(data), config)
            if result is not None:
                assert len(result) < len(data)

    def test_huge_raw_offset(self):
        data = bytearray(REFERENCE_INPUT)
        struct.pack_into('>I', data, 16, 0xFFFFFFFF)
        with pytest.raises(StripError) as exc:
            discard_exif(bytes(data))
        assert exc.value.kind == 'TruncatedIfd'

    def test_self_referencing_chain(self):
        data = bytearray(build_exif_jpeg((0,)))
        struct.pack_into('>I', data, FIRST_IFD + 2, 8)
        config = StripConfig(offset_mode=OffsetMode.RELATIVE, follow_chain=True)
        with pytest.raises(StripError) as exc:
            discard_exif(bytes(data), config)
        assert isinstance(exc.value.reason, ChainOutOfBoundsError)

    def test_long_chain_capped(self):
        data = build_exif_jpeg((0,) * 10)
        config = StripConfig(offset_mode=OffsetMode.RELATIVE, follow_chain=True,
                             max_ifds=5)
        with pytest.raises(StripError) as exc:
            discard_exif(data, config)
        assert exc.value.kind == 'ChainOutOfBounds'

    def test_many_app1_markers(self):
        # Only the first FF E1 is considered
        data = b'\xff\xe1' * 50
        with pytest.raises(StripError):
            discard_exif(data)


class TestCollaboratorsNeverRaise:
    @pytest.mark.parametrize('data', [
        b'',
        b'\xff',
        b'\xff\xe1',
        b'\xff\xe1\x00\x08Exif\x00\x00',
        b'\xff\xe1\x00\x10Exif\x00\x00II\x2a\x00\xff\xff\xff\xff',
        bytes(range(256)),
    ])
    def test_scan_garbage(self, data):
        result = scan_bytes(data)
        assert result.file_size == len(data)

    @pytest.mark.parametrize('n', [0, 3, 10, 19, 25])
    def test_hook_truncated(self, n):
        out = io.BytesIO()
        decision = file_will_be_uploaded(io.BytesIO(REFERENCE_INPUT[:n]), out)
        assert not decision.modified
        assert out.getvalue() == b''
