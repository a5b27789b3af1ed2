"""Datetime utilities for consistent timestamp handling.

Timestamps written to the ledger use the local timezone so they read
naturally in the UI.
"""

from datetime import datetime


def get_current_datetime_local_iso() -> str:
    """Get current datetime in local timezone as ISO format string.

    Returns:
        ISO 8601 formatted datetime string with local timezone offset.
        Example: "2026-02-04T14:02:04.556063+03:00"

    """
    return datetime.now().astimezone().isoformat()
