"""
Debug output for screcord.

Timestamped trace lines on stderr, silent unless enabled through
the config file or the --debug command line flag.
"""

import sys
from datetime import datetime


_enabled: bool = False


def set_debug(enabled: bool):
    """Turn debug output on or off."""
    global _enabled
    _enabled = bool(enabled)


def debug_print(tag: str, msg: str) -> None:
    if not _enabled:
        return
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] {tag}: {msg}", file=sys.stderr)
