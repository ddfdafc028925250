"""
Cycle health — severity flags and overdraft remedy from a projection.

Translates the simulated drawdown into answers a household can act on:
  Q1: "Will I go overdrawn?"         → lowest point below zero
  Q2: "Will I break my limit?"       → lowest point below -overdraft limit
  Q3: "How much do I need, by when?" → amount to clear / buffer, first dip dates
  Q4: "What can I actually spend?"   → true disposable balance

Thresholds only classify the result; they never change the arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np
import pandas as pd

from core.utils import round_money

if TYPE_CHECKING:
    from engine.ledger import BalancePoint, ProjectionResult

_ZERO = Decimal("0")


class Severity(str, Enum):
    OK = "ok"
    OVERDRAWN = "overdrawn"  # below zero, within the arranged overdraft
    LIMIT_RISK = "limit_risk"  # below -overdraft limit


def classify(lowest_point: Decimal, overdraft_limit: Decimal = _ZERO) -> Severity:
    if lowest_point < -abs(overdraft_limit):
        return Severity.LIMIT_RISK
    if lowest_point < 0:
        return Severity.OVERDRAWN
    return Severity.OK


@dataclass(frozen=True)
class OverdraftRemedy:
    amount_to_clear: Decimal  # brings the lowest point back to zero
    amount_to_buffer: Decimal  # brings the lowest point back inside the limit
    deadline: Optional[date]  # first day below zero
    limit_deadline: Optional[date]  # first day below -limit


@dataclass(frozen=True)
class OverdraftPeriod:
    severity: Severity
    start: date
    end: date


def overdraft_remedy(
    result: ProjectionResult,
    overdraft_limit: Decimal = _ZERO,
) -> Optional[OverdraftRemedy]:
    """None when the projection never dips below zero."""
    if result.lowest_point >= 0:
        return None
    limit = abs(overdraft_limit)
    first_dip = next((p.on for p in result.drawdown if p.balance < 0), None)
    first_limit_dip = next((p.on for p in result.drawdown if p.balance < -limit), None)
    return OverdraftRemedy(
        amount_to_clear=abs(result.lowest_point),
        amount_to_buffer=abs(min(_ZERO, result.lowest_point + limit)),
        deadline=first_dip,
        limit_deadline=first_limit_dip,
    )


def overdraft_periods(
    drawdown: Sequence[BalancePoint],
    overdraft_limit: Decimal = _ZERO,
) -> List[OverdraftPeriod]:
    """Contiguous runs of days spent overdrawn, split where the severity changes."""
    if not drawdown:
        return []
    balances = np.array([float(p.balance) for p in drawdown], dtype=float)
    limit = abs(float(overdraft_limit))
    labels = np.select(
        [balances < -limit, balances < 0.0],
        [Severity.LIMIT_RISK.value, Severity.OVERDRAWN.value],
        default=Severity.OK.value,
    )

    periods: List[OverdraftPeriod] = []
    run_start = 0
    for i in range(1, len(labels) + 1):
        if i < len(labels) and labels[i] == labels[run_start]:
            continue
        if labels[run_start] != Severity.OK.value:
            periods.append(
                OverdraftPeriod(
                    severity=Severity(labels[run_start]),
                    start=drawdown[run_start].on,
                    end=drawdown[i - 1].on,
                )
            )
        run_start = i
    return periods


@dataclass
class CycleHealthReport:
    """Structured household-facing cycle output."""
    cycle_key: str
    severity: Severity
    overdraft_limit: Decimal

    lowest_point: Decimal
    end_of_cycle_balance: Decimal
    true_disposable: Decimal  # balance - unpaid expenses + unpaid income

    percent_paid: float
    unpaid_count: int

    remedy: Optional[OverdraftRemedy] = None
    periods: List[OverdraftPeriod] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a display-friendly table."""
        rows = [
            {"Metric": "Cycle", "Value": self.cycle_key},
            {"Metric": "Severity", "Value": self.severity.value},
            {"Metric": "Lowest Point", "Value": str(round_money(self.lowest_point))},
            {"Metric": "End of Cycle", "Value": str(round_money(self.end_of_cycle_balance))},
            {"Metric": "True Disposable", "Value": str(round_money(self.true_disposable))},
            {"Metric": "Paid", "Value": f"{self.percent_paid:.1%}"},
            {"Metric": "Unpaid Items", "Value": str(self.unpaid_count)},
        ]
        if self.remedy is not None:
            rows.append({"Metric": "Amount To Clear", "Value": str(round_money(self.remedy.amount_to_clear))})
            rows.append({"Metric": "Amount To Buffer", "Value": str(round_money(self.remedy.amount_to_buffer))})
        if self.flags:
            rows.append({"Metric": "FLAGS", "Value": " | ".join(self.flags)})
        return pd.DataFrame(rows)


def generate_health_report(
    result: ProjectionResult,
    *,
    overdraft_limit: Decimal = _ZERO,
) -> CycleHealthReport:
    """
    Generate a cycle health report from a projection.

    Parameters
    ----------
    result : ProjectionResult
        Output of engine.ledger.project().
    overdraft_limit : Decimal
        Arranged overdraft of the account the cycle runs on (sign ignored).
    """
    limit = abs(overdraft_limit)
    severity = classify(result.lowest_point, limit)
    remedy = overdraft_remedy(result, limit)

    flags = []
    if severity is Severity.LIMIT_RISK:
        flags.append(f"LIMIT_RISK: balance falls below the -{round_money(limit)} overdraft limit")
    elif severity is Severity.OVERDRAWN:
        flags.append("OVERDRAWN: balance falls below zero before payday")
    if result.overdue_adjustment < 0:
        flags.append(f"OVERDUE: {round_money(-result.overdue_adjustment)} of past items not yet marked paid")

    true_disposable = result.starting_balance - result.expense_unpaid + result.income_unpaid

    return CycleHealthReport(
        cycle_key=result.cycle.key,
        severity=severity,
        overdraft_limit=limit,
        lowest_point=result.lowest_point,
        end_of_cycle_balance=result.end_of_cycle_balance,
        true_disposable=true_disposable,
        percent_paid=result.percent_paid,
        unpaid_count=result.unpaid_count,
        remedy=remedy,
        periods=overdraft_periods(result.drawdown, limit),
        flags=flags,
    )
