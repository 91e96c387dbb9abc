"""Strip configuration -- offset policy, chain following, hook behaviour.

Defaults reproduce the long-standing behaviour; a JSON file can override
individual fields without repeating the rest.
"""

import json
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import FrozenSet

# File extensions considered for batch processing
JPEG_EXTENSIONS = frozenset({'.jpg', '.jpeg', '.jpe', '.jfif'})

# Upper bound on IFDs followed in chain mode.  Real JPEGs carry 1-2
# (IFD0 + thumbnail IFD1); anything longer is a corrupt or hostile chain.
DEFAULT_MAX_IFDS = 64

MISSING_EXIF_POLICIES = ('passthrough', 'reject')


class OffsetMode(str, Enum):
    """How a TIFF-relative IFD offset becomes an absolute file offset.

    LEGACY:   8 means "directly after the header"; any other value is
              already absolute.
    RELATIVE: every value is added to the TIFF header position.
    """
    LEGACY = 'legacy'
    RELATIVE = 'relative'


@dataclass
class StripConfig:
    """Tunable behaviour of the locator, the excisor and the upload hook."""

    offset_mode: OffsetMode = OffsetMode.LEGACY
    follow_chain: bool = False
    strict_segment_length: bool = False
    max_ifds: int = DEFAULT_MAX_IFDS
    on_missing_exif: str = 'passthrough'
    extensions: FrozenSet[str] = field(default_factory=lambda: JPEG_EXTENSIONS)

    def __post_init__(self):
        self.offset_mode = OffsetMode(self.offset_mode)
        if self.on_missing_exif not in MISSING_EXIF_POLICIES:
            raise ValueError(
                f'on_missing_exif must be one of {MISSING_EXIF_POLICIES}, '
                f'got {self.on_missing_exif!r}')
        if not isinstance(self.max_ifds, int) or self.max_ifds < 1:
            raise ValueError(f'max_ifds must be a positive integer, got {self.max_ifds!r}')
        self.extensions = frozenset(
            ext.lower() if ext.startswith('.') else '.' + ext.lower()
            for ext in self.extensions)

    @classmethod
    def default(cls) -> 'StripConfig':
        """Return the built-in defaults."""
        return cls()

    @classmethod
    def from_json(cls, path) -> 'StripConfig':
        """Load a config file and merge it over the defaults.

        JSON format (every key optional)::

            {
              "offset_mode": "legacy" | "relative",
              "follow_chain": false,
              "strict_segment_length": false,
              "max_ifds": 64,
              "on_missing_exif": "passthrough" | "reject",
              "extensions": [".jpg", ".jpeg"]
            }
        """
        with open(str(path), 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'{path}: expected a JSON object at top level')

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f'{path}: unknown config key(s): {", ".join(unknown)}')

        return cls.default().merged(**data)

    def merged(self, **overrides) -> 'StripConfig':
        """Copy of this config with non-None overrides applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return StripConfig(**values)
