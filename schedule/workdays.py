"""
Working-day calendar — weekend and bank-holiday aware date shifting.

A working day is any day that is not a Saturday, Sunday, or listed holiday.
Bills slide forward to the next working day; paydays (cycle boundaries)
slide backward to the prior one. When no holiday list is available the
calendar degrades to weekend-only adjustment.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import FrozenSet, Iterable, Mapping, Optional

from core.config import DEFAULT_HOLIDAY_DIVISION
from core.utils import to_date

logger = logging.getLogger(__name__)

_WEEKEND = frozenset({5, 6})  # Saturday, Sunday
_ONE_DAY = timedelta(days=1)


class HolidayCalendar:
    """Immutable set of non-working dates in addition to weekends."""

    def __init__(self, holidays: Optional[Iterable] = None):
        self._holidays: FrozenSet[date] = frozenset(_coerce_holidays(holidays))

    @classmethod
    def weekends_only(cls) -> "HolidayCalendar":
        return cls(None)

    @classmethod
    def from_gov_uk_payload(
        cls,
        payload: Optional[Mapping],
        division: str = DEFAULT_HOLIDAY_DIVISION,
    ) -> "HolidayCalendar":
        """
        Build from the UK bank-holiday feed shape:
        ``{"england-and-wales": {"events": [{"date": "2024-12-25", ...}]}}``.
        A missing or malformed payload yields a weekend-only calendar; a
        single event without a date is skipped.
        """
        try:
            events = list(payload[division]["events"])
        except (KeyError, TypeError) as exc:
            logger.info("Holiday payload unusable (%s); using weekend-only calendar.", exc)
            return cls.weekends_only()
        dates = []
        for event in events:
            try:
                dates.append(event["date"])
            except (KeyError, TypeError):
                logger.warning("Skipping holiday event without a date: %r", event)
        return cls(dates)

    @property
    def holidays(self) -> FrozenSet[date]:
        return self._holidays

    def is_working_day(self, d: date) -> bool:
        return d.weekday() not in _WEEKEND and d not in self._holidays

    def next_working_day(self, d: date) -> date:
        """``d`` itself if it is a working day, else the first working day after it."""
        while not self.is_working_day(d):
            d += _ONE_DAY
        return d

    def prior_working_day(self, d: date) -> date:
        """``d`` itself if it is a working day, else the last working day before it."""
        while not self.is_working_day(d):
            d -= _ONE_DAY
        return d

    def __len__(self) -> int:
        return len(self._holidays)

    def __repr__(self) -> str:
        return f"HolidayCalendar({len(self._holidays)} holidays)"


def _coerce_holidays(holidays: Optional[Iterable]):
    if holidays is None:
        return
    for raw in holidays:
        try:
            yield to_date(raw)
        except ValueError:
            logger.warning("Skipping unparseable holiday date %r", raw)
