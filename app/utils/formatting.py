"""Text formatting helpers for replies."""
import math
from datetime import datetime


def round_minutes(start_time: datetime, end_time: datetime) -> int:
    """
    Whole minutes between two times, rounded half up.

    Example:
        >>> from datetime import timedelta
        >>> t = datetime(2024, 1, 1, 9, 0, 0)
        >>> round_minutes(t, t + timedelta(seconds=95))
        2
    """
    minutes = (end_time - start_time).total_seconds() / 60
    return max(0, math.floor(minutes + 0.5))


def format_duration(total_minutes: int) -> str:
    """
    Format minutes as hours and minutes.

    Example:
        >>> format_duration(95)
        '1h 35m'
    """
    hours, minutes = divmod(max(0, total_minutes), 60)
    return f"{hours}h {minutes}m"
