"""Upload interception hook.

Called by a file-upload pipeline before an uploaded file is committed to
storage.  The hook has three possible outcomes:

* stripped -- the transformed bytes are written to ``output``;
  ``modified=True`` and the rejection string is empty,
* passed through -- nothing is written; ``modified=False`` and the
  rejection string is empty, so the caller keeps the original bytes,
* rejected -- nothing is written and ``rejection`` explains why.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional

from exifstrip.config import StripConfig
from exifstrip.errors import MarkerNotFoundError, StripError
from exifstrip.stripper import read_input, strip_exif

logger = logging.getLogger(__name__)


@dataclass
class UploadDecision:
    """What the upload pipeline should do with a file."""
    modified: bool = False
    rejection: str = ''
    bytes_removed: int = 0

    @property
    def rejected(self) -> bool:
        return bool(self.rejection)


def file_will_be_uploaded(file: BinaryIO, output: BinaryIO,
                          config: Optional[StripConfig] = None,
                          log: Optional[logging.Logger] = None) -> UploadDecision:
    """Strip EXIF from an uploaded file before it is stored.

    Args:
        file: Readable binary stream with the uploaded bytes.
        output: Writable binary sink for the transformed bytes.
        config: ``on_missing_exif`` decides whether files without an APP1
            marker pass through or are rejected.
        log: Diagnostic sink. None uses this module's logger.
    """
    config = config or StripConfig.default()
    log = log or logger

    try:
        raw = read_input(file)
    except (OSError, TypeError) as e:
        log.error('An error occurred while trying to read the uploaded file: %s', e)
        return UploadDecision(
            rejection=f'An error occurred while trying to read the uploaded file: {e}')

    try:
        outcome = strip_exif(raw, config, log)
    except StripError as e:
        if isinstance(e.reason, MarkerNotFoundError) and config.on_missing_exif == 'passthrough':
            log.info('No EXIF segment in upload; passing through unmodified.')
            return UploadDecision()
        log.error('Rejecting upload: %s', e)
        return UploadDecision(rejection=f'The uploaded file was rejected: {e}')

    output.write(outcome.data)
    log.info('Successfully processed a new image (%d bytes removed).',
             outcome.bytes_removed)
    return UploadDecision(modified=True, bytes_removed=outcome.bytes_removed)
