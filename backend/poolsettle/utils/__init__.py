from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

EASTERN = ZoneInfo("America/New_York")


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def now_epoch() -> int:
    """Current time as integer epoch seconds."""
    return int(utcnow().timestamp())


def ensure_utc(dt: datetime) -> datetime:
    """Make a naive datetime timezone-aware (UTC). Already-aware datetimes pass through.

    Provider timestamps frequently omit the offset; they are published in UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_utc(value: str | datetime) -> datetime:
    """Parse a date string or datetime into a tz-aware UTC datetime.

    Handles ISO 8601 strings (with or without Z/offset) and bare datetimes.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


def eastern_date(epoch_seconds: int) -> date:
    """Civil calendar date in US Eastern time for an epoch timestamp."""
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).astimezone(EASTERN).date()


def add_days_iso(iso_day: str, days: int) -> str:
    """Shift a YYYY-MM-DD date by whole calendar days (no wall-clock offsets)."""
    return (date.fromisoformat(iso_day) + timedelta(days=days)).isoformat()
