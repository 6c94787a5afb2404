# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster date generation — which calendar dates a team's roster shows.

Dates are ``YYYY-MM-DD`` strings throughout; they sort chronologically.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from roster_service.core.config import settings
from roster_service.models.domain import WEEKDAY_INDEX


def _weekday_numbers(preferred_days: Iterable[str]) -> set[int]:
    return {WEEKDAY_INDEX[day] for day in preferred_days}


def parse_date_key(value: str) -> date:
    """Parse ``YYYY-MM-DD`` (a trailing ``T...`` time part is ignored)."""
    return date.fromisoformat(value.split("T")[0])


def today_key(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()


def upcoming(
    preferred_days: Iterable[str],
    today: Optional[date] = None,
    start_year: Optional[int] = None,
    end_year: Optional[int] = None,
) -> list[str]:
    """
    Every date matching ``preferred_days`` from ``today`` (or Jan 1 of
    ``start_year``) through Dec 31 of ``end_year``, ascending.
    """
    weekdays = _weekday_numbers(preferred_days)
    if not weekdays:
        return []

    today = today or date.today()
    start = date(start_year, 1, 1) if start_year is not None else today
    end = date(end_year if end_year is not None else start.year, 12, 31)

    dates: list[str] = []
    current = start
    while current <= end:
        if current.weekday() in weekdays:
            dates.append(current.isoformat())
        current += timedelta(days=1)
    return dates


def previous(
    preferred_days: Iterable[str],
    earliest: str,
    count: Optional[int] = None,
) -> list[str]:
    """
    Up to ``count`` matching dates strictly before ``earliest``, ascending.
    The backward scan stops after PREVIOUS_LOOKBACK_DAYS days.
    """
    count = count if count is not None else settings.DEFAULT_PREVIOUS_COUNT
    weekdays = _weekday_numbers(preferred_days)

    found: list[str] = []
    current = parse_date_key(earliest) - timedelta(days=1)
    for _ in range(settings.PREVIOUS_LOOKBACK_DAYS):
        if len(found) >= count:
            break
        if current.weekday() in weekdays:
            found.append(current.isoformat())
        current -= timedelta(days=1)
    return sorted(found)


def next_year(preferred_days: Iterable[str], last_loaded: str) -> list[str]:
    """All matching dates of the year after ``last_loaded``."""
    year = parse_date_key(last_loaded).year + 1
    return upcoming(preferred_days, start_year=year, end_year=year)


def row_class(date_key: str, today: Optional[date] = None) -> str:
    key = date_key.split("T")[0]
    now = today_key(today)
    if key < now:
        return "past-date"
    if key == now:
        return "today-date"
    return "future-date"


class RosterDateWindow:
    """The list of dates loaded into one team's roster view."""

    def __init__(self, preferred_days: Iterable[str], today: Optional[date] = None) -> None:
        self._preferred_days = list(preferred_days)
        self._today = today
        self.dates: list[str] = []
        self.reset()

    def reset(self) -> list[str]:
        self.dates = upcoming(self._preferred_days, today=self._today)
        return self.dates

    def load_previous(self, count: Optional[int] = None) -> list[str]:
        if not self.dates:
            anchor = today_key(self._today)
        else:
            anchor = self.dates[0]
        earlier = [d for d in previous(self._preferred_days, anchor, count) if d not in self.dates]
        self.dates = earlier + self.dates
        return earlier

    def load_next_year(self) -> list[str]:
        if not self.dates:
            return []
        later = [d for d in next_year(self._preferred_days, self.dates[-1]) if d not in self.dates]
        self.dates = self.dates + later
        return later

    def has_past_dates(self) -> bool:
        return bool(self.dates) and self.dates[0] < today_key(self._today)

    def closest_next_date(self) -> Optional[str]:
        now = today_key(self._today)
        return next((d for d in self.dates if d >= now), None)
