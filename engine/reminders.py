"""
Reminder matching — obligations whose (adjusted) due date is exactly N days ahead.

Only the single horizon day is expanded, so each occurrence is reminded
once, on the run N days before it. Suppressing duplicates across runs is
the caller's job (send log); this module only decides what is due.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Optional

from core.config import DEFAULT_ADJUSTMENT_LOOKBACK_DAYS, DEFAULT_REMINDER_LOOKAHEAD_DAYS
from core.schema import Obligation, Occurrence, ProgressEntry
from core.utils import to_date
from schedule.recurrence import expand
from schedule.workdays import HolidayCalendar

from .overlay import cancelled


def horizon_date(now, lookahead_days: int = DEFAULT_REMINDER_LOOKAHEAD_DAYS) -> date:
    return to_date(now) + timedelta(days=lookahead_days)


def find_upcoming(
    obligations: Iterable[Obligation],
    calendar: Optional[HolidayCalendar],
    now,
    lookahead_days: int = DEFAULT_REMINDER_LOOKAHEAD_DAYS,
    *,
    progress: Iterable[ProgressEntry] = (),
    cycle_start: Optional[date] = None,
    lookback_days: int = DEFAULT_ADJUSTMENT_LOOKBACK_DAYS,
) -> List[Occurrence]:
    """
    Occurrences landing exactly on ``now + lookahead_days``.

    Occurrences cancelled in ``progress`` (optionally limited to one cycle)
    are excluded. Income is included; callers filter by kind if they only
    remind about bills.
    """
    target = horizon_date(now, lookahead_days)
    entries = list(progress)

    due: List[Occurrence] = []
    for ob in obligations:
        due.extend(
            occ for occ in expand(ob, target, target, calendar, lookback_days=lookback_days)
            if occ.due_date == target
        )

    if not entries:
        return due
    dropped = set(cancelled(due, entries, cycle_start=cycle_start))
    return [occ for occ in due if occ not in dropped]
