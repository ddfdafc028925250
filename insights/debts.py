"""
Debt payoff strategy — avalanche vs snowball ordering and a recommendation.

Avalanche pays the highest rate first (least interest overall); snowball
pays the smallest balance first (quick wins). Avalanche is recommended once
the highest rate is expensive enough to matter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List

import pandas as pd

from core.config import DEFAULT_AVALANCHE_RATE_THRESHOLD
from core.schema import Debt

AVALANCHE = "avalanche"
SNOWBALL = "snowball"
NONE = "none"


@dataclass
class DebtRanking:
    avalanche_order: List[Debt] = field(default_factory=list)
    snowball_order: List[Debt] = field(default_factory=list)
    recommended: str = NONE
    highest_rate: Decimal = Decimal("0")
    message: str = ""

    def to_dataframe(self) -> pd.DataFrame:
        """One row per debt with its position in each ordering."""
        avalanche_pos = {id(d): i + 1 for i, d in enumerate(self.avalanche_order)}
        snowball_pos = {id(d): i + 1 for i, d in enumerate(self.snowball_order)}
        rows = [
            {
                "id": d.id,
                "name": d.name,
                "kind": d.kind,
                "balance": float(d.balance),
                "rate": float(d.rate),
                "avalanche_rank": avalanche_pos[id(d)],
                "snowball_rank": snowball_pos[id(d)],
            }
            for d in self.avalanche_order
        ]
        return pd.DataFrame(
            rows,
            columns=["id", "name", "kind", "balance", "rate", "avalanche_rank", "snowball_rank"],
        )


def rank(
    debts: Iterable[Debt],
    *,
    rate_threshold: float = DEFAULT_AVALANCHE_RATE_THRESHOLD,
) -> DebtRanking:
    """
    Rank outstanding debts both ways. Ties keep input order (sorted() is stable).
    An empty list recommends nothing.
    """
    debts = list(debts)
    if not debts:
        return DebtRanking(recommended=NONE, message="No active debts found.")

    avalanche = sorted(debts, key=lambda d: d.rate, reverse=True)
    snowball = sorted(debts, key=lambda d: d.balance)

    highest = max(d.rate for d in debts)
    if highest > Decimal(str(rate_threshold)):
        recommended = AVALANCHE
        message = (
            f"Avalanche: your highest interest rate is {highest}%, which is costing you "
            f"significantly in interest. Pay that debt off first."
        )
    else:
        recommended = SNOWBALL
        message = "Snowball: pay off the smallest balances first to build momentum."

    return DebtRanking(
        avalanche_order=avalanche,
        snowball_order=snowball,
        recommended=recommended,
        highest_rate=highest,
        message=message,
    )
