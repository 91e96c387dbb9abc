"""Logging utilities -- ANSI terminal colors, timestamped log lines, debug setup.

Provides consistent color-coded output for the CLI and plain, timestamped
lines for log files.
"""

import logging
import sys
from datetime import datetime

# ---------------------------------------------------------------------------
# ANSI color codes
# ---------------------------------------------------------------------------

_RESET = '\033[0m'
_DIM = '\033[2m'

_GREEN = '\033[32m'
_YELLOW = '\033[33m'
_CYAN = '\033[36m'

_BOLD_RED = '\033[1;31m'
_BOLD_CYAN = '\033[1;36m'


def _is_tty():
    """Check if stdout is a terminal (not piped)."""
    try:
        return sys.stdout.isatty()
    except AttributeError:
        return False


# Module-level flag -- set once at import time
_USE_COLOR = _is_tty()


def set_color_enabled(enabled: bool):
    """Override automatic color detection."""
    global _USE_COLOR
    _USE_COLOR = enabled


def _c(code: str, text: str) -> str:
    """Apply ANSI code if color is enabled."""
    if _USE_COLOR:
        return f'{code}{text}{_RESET}'
    return text


# ---------------------------------------------------------------------------
# CLI formatting helpers
# ---------------------------------------------------------------------------

def cli_header(text: str) -> str:
    """Bold cyan header line."""
    return _c(_BOLD_CYAN, text)


def cli_success(text: str) -> str:
    """Green text for stripped / clean."""
    return _c(_GREEN, text)


def cli_warning(text: str) -> str:
    """Yellow text for files that still carry EXIF."""
    return _c(_YELLOW, text)


def cli_error(text: str) -> str:
    """Red text for errors."""
    return _c(_BOLD_RED, text)


def cli_info(text: str) -> str:
    """Cyan text for informational messages."""
    return _c(_CYAN, text)


def cli_dim(text: str) -> str:
    """Dim text for secondary information."""
    return _c(_DIM, text)


# ---------------------------------------------------------------------------
# Log file formatting (always plain text with timestamps and levels)
# ---------------------------------------------------------------------------

def _timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def log_info(msg: str) -> str:
    """Format a log file INFO line."""
    return f'[{_timestamp()}] [INFO]  {msg}'


def log_warn(msg: str) -> str:
    """Format a log file WARN line."""
    return f'[{_timestamp()}] [WARN]  {msg}'


def log_error(msg: str) -> str:
    """Format a log file ERROR line."""
    return f'[{_timestamp()}] [ERROR] {msg}'


# ---------------------------------------------------------------------------
# Library logger setup
# ---------------------------------------------------------------------------

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s'


def enable_debug_logging(stream=None) -> logging.Handler:
    """Send exifstrip debug diagnostics to ``stream`` (stderr by default).

    Returns the installed handler so callers can remove it again.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, '%Y-%m-%d %H:%M:%S'))
    pkg_logger = logging.getLogger('exifstrip')
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG)
    return handler
