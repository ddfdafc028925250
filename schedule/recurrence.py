"""
Recurrence expansion — one obligation plus a date window → dated occurrences.

Periodic candidates are generated from the anchor (k-th step, never
cumulative) so day-of-month and day-of-week phase survive short months.
With ``adjust_for_working_day`` each candidate slides forward to the next
working day and is kept only if the slid date lands inside the window; raw
candidates are scanned from a short lookback before the window so a bill
that slid across the window start is not lost.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from core.config import DEFAULT_ADJUSTMENT_LOOKBACK_DAYS
from core.schema import Obligation, Occurrence, OneOff
from core.utils import first_index_on_or_after, step_from_anchor

from .workdays import HolidayCalendar


def expand(
    obligation: Obligation,
    window_start: date,
    window_end: date,
    calendar: Optional[HolidayCalendar] = None,
    *,
    lookback_days: int = DEFAULT_ADJUSTMENT_LOOKBACK_DAYS,
) -> List[Occurrence]:
    """
    Concrete occurrences of ``obligation`` with window_start <= due_date <= window_end.

    Parameters
    ----------
    obligation : Obligation
        The definition to expand. Inactive obligations expand to nothing.
    window_start, window_end : date
        Inclusive window.
    calendar : HolidayCalendar, optional
        Used only when the obligation adjusts for working days; weekend-only if omitted.
    lookback_days : int
        How far before ``window_start`` a raw date may sit and still slide in.

    Returns
    -------
    List of Occurrence in date order. Same inputs always give the same list.
    """
    if window_end < window_start:
        raise ValueError(f"Window end {window_end} is before start {window_start}.")
    if not obligation.active:
        return []

    schedule = obligation.schedule

    # One-off: the exact date, unadjusted
    if isinstance(schedule, OneOff):
        if window_start <= schedule.on <= window_end:
            return [_occurrence(obligation, schedule.on)]
        return []

    adjust = obligation.adjust_for_working_day
    cal = calendar if calendar is not None else HolidayCalendar.weekends_only()
    scan_from = window_start - timedelta(days=lookback_days) if adjust else window_start

    out: List[Occurrence] = []
    k = first_index_on_or_after(schedule.anchor, schedule.frequency, scan_from)
    while True:
        raw = step_from_anchor(schedule.anchor, schedule.frequency, k)
        if raw > window_end:
            break
        due = cal.next_working_day(raw) if adjust else raw
        if window_start <= due <= window_end:
            out.append(_occurrence(obligation, due))
        k += 1

    return out


def _occurrence(obligation: Obligation, due: date) -> Occurrence:
    return Occurrence(
        obligation_id=obligation.id,
        kind=obligation.kind,
        due_date=due,
        amount=obligation.amount,
        name=obligation.name,
    )
