"""
Data preparation — parsing raw household rows into engine types, validation.
"""

from .loader import (
    ObligationRecord,
    ProgressRecord,
    load_obligations,
    load_progress,
    load_budget_cycles,
    load_accounts,
    load_debts,
    load_holidays,
)
from .validators import ValidationResult, validate_obligations

__all__ = [
    "ObligationRecord",
    "ProgressRecord",
    "load_obligations",
    "load_progress",
    "load_budget_cycles",
    "load_accounts",
    "load_debts",
    "load_holidays",
    "ValidationResult",
    "validate_obligations",
]
