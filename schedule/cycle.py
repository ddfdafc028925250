"""
Budget cycle resolution from a payday anchor.

A cycle runs from one (adjusted) payday to the next. Both boundaries snap
BACKWARD to the prior working day: pay that falls on a weekend is assumed
to have landed on the Friday before. Bills slide the other way (see
recurrence.py); the asymmetry is deliberate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from core.config import DEFAULT_BUDGET_MONTH_ROLLOVER_DAY
from core.schema import Frequency, Obligation, ObligationKind, Periodic
from core.utils import anchored_day

from .workdays import HolidayCalendar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleWindow:
    """Resolved cycle boundaries (both inclusive)."""

    start: date
    end: date
    raw_start: date
    budget_month_rollover_day: int = DEFAULT_BUDGET_MONTH_ROLLOVER_DAY

    @property
    def key(self) -> str:
        """Join key for progress rows and the BudgetCycle snapshot."""
        return self.start.isoformat()

    @property
    def budget_month(self) -> date:
        """First day of the month this cycle is budgeted as."""
        first = self.raw_start.replace(day=1)
        if self.raw_start.day >= self.budget_month_rollover_day:
            return first + relativedelta(months=1)
        return first

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def progress_pct(self, now: date) -> float:
        if now < self.start:
            return 0.0
        duration = self.duration_days or 1
        return min((now - self.start).days / duration * 100.0, 100.0)

    def days_remaining(self, now: date) -> int:
        return max((self.end - now).days, 0)


def resolve_cycle(
    pay_anchor_day: int,
    now: date,
    calendar: Optional[HolidayCalendar] = None,
    *,
    budget_month_rollover_day: int = DEFAULT_BUDGET_MONTH_ROLLOVER_DAY,
) -> CycleWindow:
    """
    Cycle containing ``now`` for a payday on ``pay_anchor_day`` of each month.

    If today is on/after this month's payday the raw start is this month's
    payday, otherwise last month's. Paydays past a short month's end clamp
    to its last day.
    """
    if not 1 <= pay_anchor_day <= 31:
        raise ValueError(f"Pay anchor day must be 1-31, got {pay_anchor_day}.")
    cal = calendar if calendar is not None else HolidayCalendar.weekends_only()

    this_month = anchored_day(now.year, now.month, pay_anchor_day)
    if now >= this_month:
        raw_start = this_month
    else:
        prev = now.replace(day=1) - relativedelta(months=1)
        raw_start = anchored_day(prev.year, prev.month, pay_anchor_day)

    nxt = raw_start.replace(day=1) + relativedelta(months=1)
    raw_end = anchored_day(nxt.year, nxt.month, pay_anchor_day)

    return CycleWindow(
        start=cal.prior_working_day(raw_start),
        end=cal.prior_working_day(raw_end),
        raw_start=raw_start,
        budget_month_rollover_day=budget_month_rollover_day,
    )


def primary_pay_day(obligations: Iterable[Obligation]) -> Optional[int]:
    """
    Payday anchor (day of month) from the household's primary income.

    Prefers an active income flagged ``is_primary``, then the first active
    monthly income. Returns None when nothing qualifies; callers must then
    treat cycle features as unavailable.
    """
    monthly_incomes = [
        ob for ob in obligations
        if ob.active
        and ob.kind is ObligationKind.INCOME
        and isinstance(ob.schedule, Periodic)
        and ob.schedule.frequency is Frequency.MONTHLY
    ]
    for ob in monthly_incomes:
        if ob.is_primary:
            return ob.schedule.anchor.day
    if monthly_incomes:
        return monthly_incomes[0].schedule.anchor.day
    logger.info("No monthly income found; budget cycle is unavailable.")
    return None
