"""Date Helpers — parsing tool-supplied dates and normalizing stored timestamps.

Invariants:
    - parse_date never raises: unparseable input → None
    - ensure_utc always returns an aware datetime (naive values are taken as UTC)
    - nights_between is never negative
"""

from datetime import date, datetime, timedelta, timezone


def parse_date(value: object) -> date | None:
    """Accept YYYY-MM-DD, full ISO datetimes, or date objects."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def ensure_utc(value: datetime | None) -> datetime | None:
    # SQLite returns naive datetimes; Postgres returns aware ones
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day_utc(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def nights_between(date_from: date | None, date_to: date | None) -> int:
    if date_from is None or date_to is None:
        return 0
    return max(0, (date_to - date_from).days)


def days_until(check_in: date, today: date) -> int:
    return (check_in - today).days


def stay_nights(date_from: date, date_to: date | None) -> list[date]:
    """Nights in [date_from, date_to); a single night when the range is empty."""
    if date_to is None or date_to <= date_from:
        return [date_from]
    return [date_from + timedelta(days=i) for i in range((date_to - date_from).days)]


def format_fr_date(value: datetime | date | None) -> str:
    """dd/mm/yyyy, as the French catalog renders dates."""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def iso_or_none(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None
