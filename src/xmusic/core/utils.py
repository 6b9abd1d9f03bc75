import math


def format_duration(seconds: float) -> str:
    """`m:ss`, e.g. 245.3 -> '4:05'."""
    total = _whole_seconds(seconds)
    return f"{total // 60}:{total % 60:02d}"


def format_long_duration(seconds: float) -> str:
    """`h:mm:ss` for an hour or more, otherwise `m:ss`."""
    total = _whole_seconds(seconds)
    hours, rest = divmod(total, 3600)
    if hours > 0:
        return f"{hours}:{rest // 60:02d}:{rest % 60:02d}"
    return format_duration(total)


def sanitize_duration(value) -> float:
    """Non-finite, negative or unreadable durations become 0."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


def contains_folded(haystack: str | None, needle: str) -> bool:
    """
    Case-insensitive substring test. `needle` must already be lower-cased.
    """
    if not haystack:
        return False
    return needle in haystack.lower()


def _whole_seconds(seconds: float) -> int:
    return int(sanitize_duration(seconds))
