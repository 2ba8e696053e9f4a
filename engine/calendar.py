# engine/calendar.py
from __future__ import annotations
from datetime import date, timedelta
from typing import Iterator, NamedTuple, Optional, Tuple

from .types import WEEKDAYS, TermData


class CalendarDay(NamedTuple):
    date: date
    weekday: str


def weekday_name(d: date) -> str:
    # isoweekday: Mon=1..Sun=7 -> Sun=0..Sat=6
    return WEEKDAYS[d.isoweekday() % 7]


def walk_dates(start: date, end: date) -> Iterator[CalendarDay]:
    """Every date in [start, end] ascending; nothing when start > end."""
    d = start
    while d <= end:
        yield CalendarDay(d, weekday_name(d))
        d += timedelta(days=1)


def is_date_in_term(d: date, term: Optional[TermData]) -> bool:
    if term is None:
        return False
    return term.contains(d)


def current_range(term: TermData, today: date) -> Optional[Tuple[date, date]]:
    """[termStart, min(today, termEnd)] or None when the term has not started."""
    end = min(today, term.end_date)
    if end < term.start_date:
        return None
    return term.start_date, end


def future_range(term: TermData, today: date) -> Optional[Tuple[date, date]]:
    """[max(today, termStart), termEnd] or None when the term is over."""
    start = max(today, term.start_date)
    if start > term.end_date:
        return None
    return start, term.end_date
