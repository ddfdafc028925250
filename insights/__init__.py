"""
Household-facing outputs — cycle health flags, overdraft remedy, debt strategy.
"""

from .decisions import (
    Severity,
    CycleHealthReport,
    classify,
    overdraft_remedy,
    overdraft_periods,
    generate_health_report,
)
from .debts import DebtRanking, rank

__all__ = [
    "Severity",
    "CycleHealthReport",
    "classify",
    "overdraft_remedy",
    "overdraft_periods",
    "generate_health_report",
    "DebtRanking",
    "rank",
]
