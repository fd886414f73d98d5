"""
Recording timestamps.

The date-time embedded in the filename is authoritative:

    "20260111 135431-096B2196.m4a"   (Apple Voice Memos)
    "2026-01-11_13-54-31 idea.m4a"
    "2026-01-11_13-54.wav"

When the name carries no parseable date-time the file's creation time is
used instead, never the current clock.
"""

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

_PATTERNS = (
    # YYYYMMDD HHMMSS
    re.compile(r"^(\d{4})(\d{2})(\d{2}) (\d{2})(\d{2})(\d{2})"),
    # YYYY-MM-DD_HH-MM[-SS]
    re.compile(r"^(\d{4})-(\d{2})-(\d{2})_(\d{2})-(\d{2})(?:-(\d{2}))?"),
)


def parse_filename_timestamp(filename: str) -> Optional[datetime]:
    """Naive local datetime from a filename prefix, or None."""
    for pattern in _PATTERNS:
        match = pattern.match(filename)
        if not match:
            continue
        year, month, day, hour, minute, second = (int(g) if g else 0 for g in match.groups())
        try:
            return datetime(year, month, day, hour, minute, second)
        except ValueError:
            return None
    return None


def stat_creation_time(stat) -> datetime:
    """Creation time from a stat result as a naive local datetime.

    ``st_birthtime`` where the platform has it (macOS, BSD), else ``st_ctime``.
    """
    created = getattr(stat, "st_birthtime", None) or stat.st_ctime
    return datetime.fromtimestamp(created)


def creation_time(path: Union[str, Path]) -> datetime:
    return stat_creation_time(os.stat(path))


def recording_timestamp(path: Union[str, Path]) -> datetime:
    path = Path(path)
    return parse_filename_timestamp(path.name) or creation_time(path)
