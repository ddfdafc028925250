"""
Obligation engine — progress overlay, ledger projection, reminders, orchestration.
"""

from .overlay import annotate, cancelled, index_progress
from .ledger import BalancePoint, ProjectionResult, project
from .reminders import find_upcoming
from .store import InMemoryStore, ProgressStore, TenantData
from .runner import (
    CycleProjection,
    debt_ranking,
    NoActiveCycle,
    mark_occurrence,
    project_cycle,
    restore_occurrence,
    run_projection,
    upcoming_reminders,
)
from .batch import TenantRun, run_nightly

__all__ = [
    "annotate",
    "cancelled",
    "index_progress",
    "BalancePoint",
    "ProjectionResult",
    "project",
    "find_upcoming",
    "InMemoryStore",
    "ProgressStore",
    "TenantData",
    "CycleProjection",
    "debt_ranking",
    "NoActiveCycle",
    "mark_occurrence",
    "project_cycle",
    "restore_occurrence",
    "run_projection",
    "upcoming_reminders",
    "TenantRun",
    "run_nightly",
]
