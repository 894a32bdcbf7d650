from __future__ import annotations

from datetime import date, datetime, timedelta

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
SCHOOL_DAYS = WEEKDAY_NAMES[:5]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def coerce_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value).strip()[:10])


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def iso_timestamp(moment: datetime | None = None) -> str:
    return (moment or now_local()).isoformat()


def weekday_name(day: date) -> str:
    """Lower-case English weekday name (monday..sunday)."""
    return WEEKDAY_NAMES[day.weekday()]


def week_dates(start: date, days: int = 7) -> list[date]:
    return [start + timedelta(days=i) for i in range(days)]
