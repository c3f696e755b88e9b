"""Display helpers for course content."""

from typing import Optional


def format_duration(minutes: Optional[int]) -> str:
    """
    Format a duration for the curriculum sidebar.

    Examples:
        None -> "N/A", 45 -> "45 min", 90 -> "1h 30m", 120 -> "2h"
    """
    if not minutes:
        return "N/A"
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"
