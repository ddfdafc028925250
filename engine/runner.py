"""
Projection runner — orchestrates one household's cycle projection.

Flow (load once, compute, discard; nothing is cached between calls):
  1. Parse obligation rows (malformed ones skipped, reported in ValidationResult)
  2. Resolve the active cycle from the primary income's payday and find its
     recorded starting balance
  3. Expand income and outgoing obligations over the cycle
  4. Parse and overlay the cycle's progress rows (cancel / actual amount / actual date)
  5. Simulate the ledger from the cycle's balance snapshot
  6. Classify severity against the account's overdraft limit

Marking an occurrence writes the progress row and then re-runs the whole
flow; a projection is never patched in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Union

from core.config import EngineConfig
from core.schema import (
    AnnotatedOccurrence,
    BankAccount,
    BudgetCycle,
    Obligation,
    Occurrence,
    OccurrenceKey,
    PaidStatus,
    ProgressEntry,
)
from core.utils import to_date
from data_prep.loader import (
    load_accounts,
    load_budget_cycles,
    load_debts,
    load_holidays,
    load_obligations,
    load_progress,
)
from data_prep.validators import ValidationResult
from insights.debts import DebtRanking, rank
from insights.decisions import CycleHealthReport, generate_health_report
from schedule.cycle import CycleWindow, primary_pay_day, resolve_cycle
from schedule.recurrence import expand
from schedule.workdays import HolidayCalendar

from .ledger import ProjectionResult, project
from .overlay import annotate, cancelled
from .reminders import find_upcoming
from .store import ProgressStore

logger = logging.getLogger(__name__)


@dataclass
class NoActiveCycle:
    """No payday could be derived; budget-cycle features are unavailable."""
    tenant_id: str
    reason: str
    validation: ValidationResult = field(default_factory=ValidationResult)


@dataclass
class CycleProjection:
    tenant_id: str
    cycle: CycleWindow
    result: ProjectionResult
    report: CycleHealthReport
    income: List[AnnotatedOccurrence]
    expenses: List[AnnotatedOccurrence]
    cancelled: List[Occurrence]
    validation: ValidationResult = field(default_factory=ValidationResult)


ProjectionOutcome = Union[CycleProjection, NoActiveCycle]


def expand_all(
    obligations: Sequence[Obligation],
    cycle: CycleWindow,
    calendar: HolidayCalendar,
    *,
    lookback_days: int,
) -> List[Occurrence]:
    occurrences: List[Occurrence] = []
    for ob in obligations:
        occurrences.extend(
            expand(ob, cycle.start, cycle.end, calendar, lookback_days=lookback_days)
        )
    return sorted(occurrences, key=lambda o: (o.due_date, o.kind.value, o.obligation_id))


def project_cycle(
    tenant_id: str,
    obligations: Sequence[Obligation],
    progress: Sequence[ProgressEntry],
    calendar: HolidayCalendar,
    now,
    *,
    cycle: CycleWindow,
    starting_balance: Decimal,
    overdraft_limit: Decimal = Decimal("0"),
    config: Optional[EngineConfig] = None,
    validation: Optional[ValidationResult] = None,
) -> CycleProjection:
    """Steps 3-6 for an already-resolved cycle. Pure; no store access."""
    cfg = config or EngineConfig()
    occurrences = expand_all(
        obligations, cycle, calendar, lookback_days=cfg.adjustment_lookback_days
    )
    annotated = annotate(occurrences, progress, cycle_start=cycle.start)

    income = [a for a in annotated if not a.occurrence.kind.is_outgoing]
    expenses = [a for a in annotated if a.occurrence.kind.is_outgoing]

    result = project(cycle, starting_balance, income, expenses, now)
    report = generate_health_report(result, overdraft_limit=overdraft_limit)

    return CycleProjection(
        tenant_id=tenant_id,
        cycle=cycle,
        result=result,
        report=report,
        income=income,
        expenses=expenses,
        cancelled=cancelled(occurrences, progress, cycle_start=cycle.start),
        validation=validation or ValidationResult(),
    )


def run_projection(
    store: ProgressStore,
    tenant_id: str,
    now,
    *,
    config: Optional[EngineConfig] = None,
) -> ProjectionOutcome:
    """
    Full projection for one household from a fresh read of the store.

    Never raises for bad data: malformed rows are skipped and reported in
    ``validation``. A household without a monthly income, or without a
    balance recorded for the current cycle, gets NoActiveCycle.
    """
    cfg = config or EngineConfig()
    today = to_date(now)
    data = store.tenant_data(tenant_id)

    obligations, validation = load_obligations(store.active_obligations(tenant_id))
    calendar = load_holidays(data.holidays, division=cfg.holiday_division)

    pay_day = primary_pay_day(obligations)
    if pay_day is None:
        logger.info("Tenant %s has no primary income; no active cycle.", tenant_id)
        return NoActiveCycle(
            tenant_id=tenant_id,
            reason="No monthly income with a payday is configured.",
            validation=validation,
        )

    cycle = resolve_cycle(
        pay_day, today, calendar, budget_month_rollover_day=cfg.budget_month_rollover_day
    )

    cycles, cycle_issues = load_budget_cycles(data.budget_cycles)
    accounts, account_issues = load_accounts(data.accounts)
    validation.extend(cycle_issues).extend(account_issues)

    snapshot = _snapshot_for(cycle, cycles)
    if snapshot is None:
        logger.info("Tenant %s has no balance for cycle %s; no active cycle.", tenant_id, cycle.key)
        return NoActiveCycle(
            tenant_id=tenant_id,
            reason=f"No balance recorded for cycle {cycle.key}.",
            validation=validation,
        )
    account = _account_for(snapshot, accounts)

    progress, progress_issues = load_progress(store.progress_for_cycle(tenant_id, cycle.key))
    validation.extend(progress_issues)

    return project_cycle(
        tenant_id,
        obligations,
        progress,
        calendar,
        today,
        cycle=cycle,
        starting_balance=snapshot.current_balance,
        overdraft_limit=account.overdraft_limit if account else Decimal("0"),
        config=cfg,
        validation=validation,
    )


def mark_occurrence(
    store: ProgressStore,
    tenant_id: str,
    now,
    item_key: str,
    *,
    status: PaidStatus = PaidStatus.PAID,
    actual_amount: Optional[Decimal] = None,
    actual_date: Optional[date] = None,
    config: Optional[EngineConfig] = None,
) -> ProjectionOutcome:
    """Record progress for one occurrence of the active cycle, then re-project."""
    OccurrenceKey.parse(item_key)  # reject malformed keys before writing

    outcome = run_projection(store, tenant_id, now, config=config)
    if isinstance(outcome, NoActiveCycle):
        return outcome

    store.upsert_progress(
        tenant_id,
        ProgressEntry(
            cycle_start=outcome.cycle.start,
            item_key=item_key,
            status=status,
            actual_amount=actual_amount,
            actual_date=actual_date,
        ),
    )
    return run_projection(store, tenant_id, now, config=config)


def restore_occurrence(
    store: ProgressStore,
    tenant_id: str,
    now,
    item_key: str,
    *,
    config: Optional[EngineConfig] = None,
) -> ProjectionOutcome:
    """Drop the progress row for one occurrence (undoing a cancel), then re-project."""
    outcome = run_projection(store, tenant_id, now, config=config)
    if isinstance(outcome, NoActiveCycle):
        return outcome
    if not store.delete_progress(tenant_id, outcome.cycle.key, item_key):
        logger.debug("No progress row %s in cycle %s to restore.", item_key, outcome.cycle.key)
    return run_projection(store, tenant_id, now, config=config)


def upcoming_reminders(
    store: ProgressStore,
    tenant_id: str,
    now,
    *,
    config: Optional[EngineConfig] = None,
) -> List[Occurrence]:
    """Outgoing occurrences due exactly ``reminder_lookahead_days`` from now."""
    cfg = config or EngineConfig()
    data = store.tenant_data(tenant_id)
    obligations, _ = load_obligations(store.active_obligations(tenant_id))
    calendar = load_holidays(data.holidays, division=cfg.holiday_division)

    # cancellations live in the cycle the reminder date falls in
    progress: List[ProgressEntry] = []
    cycle_start = None
    pay_day = primary_pay_day(obligations)
    if pay_day is not None:
        target = to_date(now) + timedelta(days=cfg.reminder_lookahead_days)
        cycle = resolve_cycle(
            pay_day, target, calendar, budget_month_rollover_day=cfg.budget_month_rollover_day
        )
        cycle_start = cycle.start
        progress, _ = load_progress(store.progress_for_cycle(tenant_id, cycle.key))

    due = find_upcoming(
        obligations,
        calendar,
        now,
        cfg.reminder_lookahead_days,
        progress=progress,
        cycle_start=cycle_start,
        lookback_days=cfg.adjustment_lookback_days,
    )
    return [occ for occ in due if occ.kind.is_outgoing]


def debt_ranking(
    store: ProgressStore,
    tenant_id: str,
    *,
    config: Optional[EngineConfig] = None,
) -> DebtRanking:
    """Avalanche / snowball ranking of the household's card and loan balances."""
    cfg = config or EngineConfig()
    data = store.tenant_data(tenant_id)
    debts, issues = load_debts(data.cards, data.loans)
    if issues.warnings:
        logger.info("Tenant %s: %d debt rows ignored.", tenant_id, len(issues.warnings))
    return rank(debts, rate_threshold=cfg.avalanche_rate_threshold)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _snapshot_for(cycle: CycleWindow, cycles: Sequence[BudgetCycle]) -> Optional[BudgetCycle]:
    """This cycle's balance row; the last one wins when a cycle was recorded twice."""
    exact = [c for c in cycles if c.cycle_start == cycle.start]
    return exact[-1] if exact else None


def _account_for(
    snapshot: BudgetCycle,
    accounts: Sequence[BankAccount],
) -> Optional[BankAccount]:
    if snapshot.bank_account_id is not None:
        for account in accounts:
            if account.id == snapshot.bank_account_id:
                return account
    return accounts[0] if accounts else None
