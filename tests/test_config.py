"""Tests for StripConfig defaults, JSON loading and overrides."""

import json

import pytest

from exifstrip.config import DEFAULT_MAX_IFDS, JPEG_EXTENSIONS, OffsetMode, StripConfig


class TestDefaults:
    def test_default_values(self):
        config = StripConfig.default()
        assert config.offset_mode is OffsetMode.LEGACY
        assert config.follow_chain is False
        assert config.strict_segment_length is False
        assert config.max_ifds == DEFAULT_MAX_IFDS
        assert config.on_missing_exif == 'passthrough'
        assert config.extensions == JPEG_EXTENSIONS

    def test_offset_mode_from_string(self):
        assert StripConfig(offset_mode='relative').offset_mode is OffsetMode.RELATIVE

    def test_bad_offset_mode(self):
        with pytest.raises(ValueError):
            StripConfig(offset_mode='absolute')

    def test_bad_policy(self):
        with pytest.raises(ValueError):
            StripConfig(on_missing_exif='ignore')

    def test_bad_max_ifds(self):
        with pytest.raises(ValueError):
            StripConfig(max_ifds=0)

    def test_extensions_normalized(self):
        config = StripConfig(extensions=['JPG', '.Jpeg'])
        assert config.extensions == frozenset({'.jpg', '.jpeg'})


class TestFromJSON:
    def test_partial_override(self, tmp_path):
        path = tmp_path / 'exifstrip.json'
        path.write_text(json.dumps({'offset_mode': 'relative', 'follow_chain': True}))
        config = StripConfig.from_json(path)
        assert config.offset_mode is OffsetMode.RELATIVE
        assert config.follow_chain is True
        # Untouched keys keep defaults
        assert config.on_missing_exif == 'passthrough'

    def test_unknown_key(self, tmp_path):
        path = tmp_path / 'exifstrip.json'
        path.write_text(json.dumps({'offset_mod': 'relative'}))
        with pytest.raises(ValueError, match='offset_mod'):
            StripConfig.from_json(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / 'exifstrip.json'
        path.write_text('[1, 2]')
        with pytest.raises(ValueError):
            StripConfig.from_json(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / 'exifstrip.json'
        path.write_text(json.dumps({'on_missing_exif': 'maybe'}))
        with pytest.raises(ValueError):
            StripConfig.from_json(path)


class TestMerged:
    def test_none_is_ignored(self):
        base = StripConfig(follow_chain=True)
        assert base.merged(follow_chain=None).follow_chain is True

    def test_false_overrides(self):
        base = StripConfig(follow_chain=True)
        assert base.merged(follow_chain=False).follow_chain is False

    def test_original_unchanged(self):
        base = StripConfig.default()
        base.merged(offset_mode='relative')
        assert base.offset_mode is OffsetMode.LEGACY
