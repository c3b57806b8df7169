"""
Time helpers shared by the loader and the feature pipeline.

All pipeline timestamps are integer epoch milliseconds. Local-time
conversions go through an explicit ZoneInfo so feature extraction never
depends on the host clock or timezone.
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

MS_PER_MINUTE = 60_000

# Sailing days roll over at 03:00 local time
SAILING_DAY_CUTOFF_HOUR = 3


def minutes_between(earlier_ms: int, later_ms: int) -> float:
    """Signed minutes from earlier_ms to later_ms (negative if reversed)."""
    return (later_ms - earlier_ms) / MS_PER_MINUTE


def to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are treated as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def from_epoch_ms(ms: int, tz: ZoneInfo | None = None) -> datetime:
    """Convert epoch milliseconds to an aware datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=tz or timezone.utc)


def local_hour_and_weekday(ms: int, tz: ZoneInfo) -> tuple[float, int]:
    """
    Get decimal hour of day and weekday for a timestamp in a local timezone.

    Args:
        ms: Epoch milliseconds
        tz: Operating timezone

    Returns:
        Tuple of (hour as decimal, e.g. 14.5 for 14:30; weekday with Monday=0)
    """
    local = from_epoch_ms(ms, tz)
    return local.hour + local.minute / 60, local.weekday()


def get_sailing_day(moment: datetime, tz: ZoneInfo) -> date:
    """
    Get the sailing day for a moment.

    Sailing days run from 03:00 to 02:59 local time, so anything before
    03:00 belongs to the previous day's sailing day.
    """
    local = moment.astimezone(tz)
    if local.hour < SAILING_DAY_CUTOFF_HOUR:
        return local.date() - timedelta(days=1)
    return local.date()


__all__ = [
    "MS_PER_MINUTE",
    "minutes_between",
    "to_epoch_ms",
    "from_epoch_ms",
    "local_hour_and_weekday",
    "get_sailing_day",
]
