"""Human-readable formatting helpers for progress display."""

import math

BYTES_PER_UNIT = 1024
SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_bytes(num_bytes: float) -> str:
    """Convert a byte count to a human-readable string.

    Uses binary multiples with at most two decimals and trailing zeros
    trimmed: ``0 Bytes``, ``1.5 KB``, ``10 MB``.

    Raises:
        ValueError: If the input is negative

    """
    if num_bytes < 0:
        message = "Byte size cannot be negative"
        raise ValueError(message)
    if num_bytes == 0:
        return "0 Bytes"

    index = min(
        int(math.floor(math.log(num_bytes, BYTES_PER_UNIT))),
        len(SIZE_UNITS) - 1,
    )
    index = max(index, 0)
    value = round(num_bytes / BYTES_PER_UNIT**index, 2)
    # Rounding can carry into the next unit (1023.999 KB -> 1024 KB)
    if value >= BYTES_PER_UNIT and index < len(SIZE_UNITS) - 1:
        index += 1
        value = round(num_bytes / BYTES_PER_UNIT**index, 2)

    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[index]}"


def format_speed(bytes_per_second: float) -> str:
    """Format a transfer rate, e.g. ``1.5 MB/s``."""
    return f"{format_bytes(max(bytes_per_second, 0.0))}/s"


def format_duration(seconds: float) -> str:
    """Format seconds as ``MM:SS`` or ``H:MM:SS``."""
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
