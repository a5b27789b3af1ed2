"""Utility functions and helpers for launchkit.

- Byte, speed and duration formatting (format_bytes, format_speed,
  format_duration)
- Local ISO timestamps (get_current_datetime_local_iso)
"""

from .datetime_utils import get_current_datetime_local_iso
from .formatting import (
    BYTES_PER_UNIT,
    format_bytes,
    format_duration,
    format_speed,
)

__all__ = [
    "BYTES_PER_UNIT",
    "format_bytes",
    "format_duration",
    "format_speed",
    "get_current_datetime_local_iso",
]
