"""
Ledger projector — day-by-day running balance across a budget cycle.

Key rules (matching how the household budget screen has always behaved):
  1. Paid occurrences are already reflected in the known balance and are never applied again.
  2. Unpaid occurrences dated before "now" are overdue: they are applied to the
     starting balance up front (income added, expenses subtracted) as a catch-up.
  3. Remaining unpaid occurrences are applied on their effective date while walking
     every cycle day on/after "now"; the minimum balance seen, starting from the
     seeded balance, is the lowest point.
  4. The projection is always recomputed from the full inputs, never patched.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Sequence

import pandas as pd

from core.schema import AnnotatedOccurrence, PaidStatus
from core.utils import daterange, to_date
from schedule.cycle import CycleWindow

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class BalancePoint:
    on: date
    balance: Decimal


@dataclass
class ProjectionResult:
    """Outcome of one cycle simulation."""
    cycle: CycleWindow
    starting_balance: Decimal
    overdue_adjustment: Decimal
    lowest_point: Decimal
    end_of_cycle_balance: Decimal

    # Expense progress
    percent_paid: float  # paid / total expense amount, 0.0-1.0
    unpaid_count: int
    expense_total: Decimal
    expense_paid: Decimal

    # Income progress
    income_total: Decimal
    income_paid: Decimal

    drawdown: List[BalancePoint] = field(default_factory=list)

    @property
    def expense_unpaid(self) -> Decimal:
        return self.expense_total - self.expense_paid

    @property
    def income_unpaid(self) -> Decimal:
        return self.income_total - self.income_paid

    def to_dataframe(self) -> pd.DataFrame:
        """Drawdown series as a two-column table (date, balance)."""
        return pd.DataFrame(
            {
                "date": pd.to_datetime([p.on for p in self.drawdown]),
                "balance": [float(p.balance) for p in self.drawdown],
            }
        )


def project(
    cycle: CycleWindow,
    starting_balance: Decimal,
    income: Sequence[AnnotatedOccurrence],
    expenses: Sequence[AnnotatedOccurrence],
    now,
) -> ProjectionResult:
    """
    Simulate the running balance from ``now`` to the end of ``cycle``.

    Parameters
    ----------
    cycle : CycleWindow
        Cycle being simulated (boundaries inclusive).
    starting_balance : Decimal
        Known real-world balance; already includes everything marked paid.
    income, expenses : sequence of AnnotatedOccurrence
        Overlay output for the cycle (cancelled occurrences already removed).
    now : date or datetime
        Reference instant; only its date is used.
    """
    today = to_date(now)
    balance0 = Decimal(starting_balance)

    # --- Overdue catch-up ---
    overdue_income = sum(
        (o.amount for o in income if not o.is_paid and o.effective_date < today), _ZERO
    )
    overdue_expense = sum(
        (o.amount for o in expenses if not o.is_paid and o.effective_date < today), _ZERO
    )
    overdue_adjustment = overdue_income - overdue_expense

    # --- Net unpaid movement per future day ---
    # items paid late past the cycle end land on the last cycle day
    movement: Dict[date, Decimal] = defaultdict(lambda: _ZERO)
    for o in income:
        if not o.is_paid and o.effective_date >= today:
            movement[_within(cycle, o)] += o.amount
    for o in expenses:
        if not o.is_paid and o.effective_date >= today:
            movement[_within(cycle, o)] -= o.amount

    # --- Daily walk ---
    running = balance0 + overdue_adjustment
    lowest = running
    drawdown: List[BalancePoint] = []
    for day in daterange(cycle.start, cycle.end):
        if day >= today:
            running += movement.get(day, _ZERO)
            lowest = min(lowest, running)
        drawdown.append(BalancePoint(on=day, balance=running))

    # --- Progress totals ---
    expense_total = sum((o.amount for o in expenses), _ZERO)
    expense_paid = sum((o.amount for o in expenses if o.is_paid), _ZERO)
    income_total = sum((o.amount for o in income), _ZERO)
    income_paid = sum((o.amount for o in income if o.is_paid), _ZERO)
    percent_paid = float(expense_paid / expense_total) if expense_total else 0.0
    unpaid_count = sum(1 for o in expenses if o.status is PaidStatus.PENDING)

    return ProjectionResult(
        cycle=cycle,
        starting_balance=balance0,
        overdue_adjustment=overdue_adjustment,
        lowest_point=lowest,
        end_of_cycle_balance=running,
        percent_paid=percent_paid,
        unpaid_count=unpaid_count,
        expense_total=expense_total,
        expense_paid=expense_paid,
        income_total=income_total,
        income_paid=income_paid,
        drawdown=drawdown,
    )


def _within(cycle: CycleWindow, o: AnnotatedOccurrence) -> date:
    if o.effective_date > cycle.end:
        logger.debug(
            "%s settles on %s after the cycle end; counted on %s",
            o.key, o.effective_date, cycle.end,
        )
        return cycle.end
    return o.effective_date
