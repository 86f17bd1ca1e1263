"""
JST (UTC+9) helpers.

Send dates, time slots and every timestamp shown to users are expressed in
Japan time regardless of the server timezone.
"""

from datetime import UTC, date, datetime, timedelta, timezone

JST = timezone(timedelta(hours=9), name="JST")


def to_jst(value: datetime) -> datetime:
    """Convert an aware datetime to JST. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(JST)


def get_jst_date(value: datetime) -> date:
    return to_jst(value).date()


def get_time_slot(value: datetime) -> str:
    """Bucket a moment into one of four 6-hour JST slots."""
    hour = to_jst(value).hour
    if hour <= 5:
        return "00-05"
    if hour <= 11:
        return "06-11"
    if hour <= 17:
        return "12-17"
    return "18-23"


def parse_jst_wall_clock(year: int, month: int, day: int, hour: int, minute: int) -> datetime | None:
    """Build an aware datetime from a Japan-local wall clock reading; None if invalid."""
    try:
        return datetime(year, month, day, hour, minute, tzinfo=JST)
    except ValueError:
        return None


def format_jst_datetime_for_csv(value: datetime | None) -> str:
    """YYYY-MM-DD HH:MM, or empty string when missing."""
    if value is None:
        return ""
    return to_jst(value).strftime("%Y-%m-%d %H:%M")


def format_jst_for_filename(value: datetime | None = None) -> str:
    """YYYYMMDD_HHMM of the given moment (default: now)."""
    return to_jst(value or datetime.now(UTC)).strftime("%Y%m%d_%H%M")
