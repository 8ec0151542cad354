"""
Display helpers for the dashboard.
Utilization percentages, relative timestamps and durations.

The format_* helpers are exported for presentation clients rendering the JSON API.
"""

from datetime import datetime, timezone
from typing import Optional, Union

from kubedash.utils.quantity import Quantity


def percentage(used: Quantity, total: Quantity) -> float:
    """
    Utilization of total taken up by used, in percent.

    Returns 0 when total is zero. The result is not clamped: a scope whose
    limits exceed its capacity legitimately reports more than 100.
    """
    if used.dimension != total.dimension:
        raise ValueError(
            f"Cannot compare {used.dimension.value} usage with {total.dimension.value} total"
        )
    if total.value <= 0:
        return 0.0
    return used.value / total.value * 100


def figure_percentage(used: Optional[Quantity], total: Optional[Quantity]) -> Optional[float]:
    """Percentage that stays absent when either side is absent."""
    if used is None or total is None:
        return None
    return percentage(used, total)


def clamp_percentage(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def format_percentage(value: Optional[float]) -> str:
    """Render a percentage for display, clamped to 0-100 (e.g., "2.8%")."""
    if value is None:
        return "N/A"
    return f"{clamp_percentage(value):.1f}%"


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a Kubernetes timestamp into an aware datetime, None if unparsable."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_relative_time(timestamp: Union[str, datetime, None], now: Optional[datetime] = None) -> str:
    """Render a timestamp relative to now (e.g., "2 hours ago", "just now")."""
    moment = parse_timestamp(timestamp)
    if moment is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)

    seconds = int((now - moment).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 60:
        return "just now"
    if minutes < 60:
        return f"{minutes} {'minute' if minutes == 1 else 'minutes'} ago"
    if hours < 24:
        return f"{hours} {'hour' if hours == 1 else 'hours'} ago"
    if days < 30:
        return f"{days} {'day' if days == 1 else 'days'} ago"
    return moment.date().isoformat()


def format_duration(seconds: int) -> str:
    """Render a duration in seconds compactly (e.g., "45s", "2h 30m", "3d")."""
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        hours, minutes = seconds // 3600, (seconds % 3600) // 60
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    days, hours = seconds // 86400, (seconds % 86400) // 3600
    return f"{days}d {hours}h" if hours else f"{days}d"
