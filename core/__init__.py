"""
Core package — domain types, engine configuration, and shared date/money utilities.
No business logic lives here.
"""

from .schema import (
    AnnotatedOccurrence,
    BankAccount,
    BudgetCycle,
    Debt,
    Frequency,
    Obligation,
    ObligationKind,
    Occurrence,
    OccurrenceKey,
    OneOff,
    PaidStatus,
    Periodic,
    ProgressEntry,
)
from .config import EngineConfig
from .utils import to_date, to_decimal, daterange, step_from_anchor

__all__ = [
    "AnnotatedOccurrence",
    "BankAccount",
    "BudgetCycle",
    "Debt",
    "Frequency",
    "Obligation",
    "ObligationKind",
    "Occurrence",
    "OccurrenceKey",
    "OneOff",
    "PaidStatus",
    "Periodic",
    "ProgressEntry",
    "EngineConfig",
    "to_date",
    "to_decimal",
    "daterange",
    "step_from_anchor",
]
