from datetime import date
from decimal import Decimal

import pytest

from core.config import EngineConfig
from core.schema import PaidStatus
from engine.runner import (
    NoActiveCycle,
    debt_ranking,
    mark_occurrence,
    restore_occurrence,
    run_projection,
    upcoming_reminders,
)
from engine.store import InMemoryStore, TenantData
from insights.decisions import Severity

NOW = date(2024, 5, 28)


def _paid_income(store):
    return mark_occurrence(store, "hh-1", NOW, "income_1_2505")


class TestRunProjection:
    def test_resolves_cycle_and_occurrences(self, store):
        outcome = run_projection(store, "hh-1", NOW)
        assert outcome.cycle.key == "2024-05-24"
        assert outcome.cycle.end == date(2024, 6, 25)
        assert outcome.cycle.budget_month == date(2024, 6, 1)
        assert [(e.occurrence.name, e.occurrence.due_date) for e in outcome.expenses] == [
            ("Rent", date(2024, 6, 3)),
            ("Phone", date(2024, 6, 10)),
        ]
        assert [i.occurrence.due_date for i in outcome.income] == [date(2024, 5, 25), date(2024, 6, 25)]
        assert outcome.validation.is_valid
        assert outcome.validation.warnings == []

    def test_unpaid_payday_is_caught_up(self, store):
        result = run_projection(store, "hh-1", NOW).result
        assert result.starting_balance == Decimal("1500")
        assert result.overdue_adjustment == Decimal("2000")
        assert result.lowest_point == Decimal("2270")
        assert result.end_of_cycle_balance == Decimal("4270")

    def test_is_deterministic(self, store):
        assert run_projection(store, "hh-1", NOW) == run_projection(store, "hh-1", NOW)

    def test_earlier_cycle_balance_is_not_reused(self, household):
        household.budget_cycles = household.budget_cycles[:1]
        outcome = run_projection(InMemoryStore({"hh-1": household}), "hh-1", NOW)
        assert isinstance(outcome, NoActiveCycle)
        assert outcome.reason == "No balance recorded for cycle 2024-05-24."

    def test_missing_snapshot_means_no_active_cycle(self, household):
        household.budget_cycles = []
        store = InMemoryStore({"hh-1": household})
        outcome = run_projection(store, "hh-1", NOW)
        assert isinstance(outcome, NoActiveCycle)
        assert mark_occurrence(store, "hh-1", NOW, "expense_7_0306") == outcome
        assert store.progress_for_cycle("hh-1", "2024-05-24") == []

    def test_malformed_progress_row_is_reported(self, household):
        rows = [
            {"cycle_start": "2024-05-24", "item_key": "income_1_2505", "is_paid": 1},
            {"cycle_start": "2024-05-24", "item_key": "expense_7_0306", "is_paid": "soon"},
        ]

        class RawRowStore(InMemoryStore):
            def progress_for_cycle(self, tenant_id, cycle_key):
                return rows

        outcome = run_projection(RawRowStore({"hh-1": household}), "hh-1", NOW)
        assert outcome.validation.is_valid
        assert len(outcome.validation.warnings) == 1
        assert "expense_7_0306" in outcome.validation.warnings[0]
        assert outcome.result.lowest_point == Decimal("270")

    def test_malformed_row_is_reported_not_fatal(self, household):
        household.obligations.append({"id": 99, "amount": "abc", "start_date": "2024-01-01"})
        outcome = run_projection(InMemoryStore({"hh-1": household}), "hh-1", NOW)
        assert len(outcome.validation.errors) == 1
        assert outcome.result.lowest_point == Decimal("2270")

    def test_no_income_means_no_active_cycle(self):
        store = InMemoryStore({"t": TenantData(obligations=[{"id": 1, "amount": "5", "payment_day": 3}])})
        outcome = run_projection(store, "t", NOW)
        assert isinstance(outcome, NoActiveCycle)
        assert mark_occurrence(store, "t", NOW, "expense_1_0306") == outcome


class TestMarkAndRestore:
    def test_marking_payday_paid(self, store):
        outcome = _paid_income(store)
        assert outcome.income[0].status is PaidStatus.PAID
        assert outcome.result.lowest_point == Decimal("270")
        assert outcome.result.end_of_cycle_balance == Decimal("2270")

    def test_cancel_then_restore(self, store):
        _paid_income(store)
        outcome = mark_occurrence(store, "hh-1", NOW, "expense_7_0306", status=PaidStatus.CANCELLED)
        assert [e.occurrence.name for e in outcome.expenses] == ["Phone"]
        assert [c.name for c in outcome.cancelled] == ["Rent"]
        assert outcome.result.lowest_point == Decimal("1470")

        outcome = restore_occurrence(store, "hh-1", NOW, "expense_7_0306")
        assert outcome.cancelled == []
        assert outcome.result.lowest_point == Decimal("270")

    def test_actual_amount(self, store):
        _paid_income(store)
        outcome = mark_occurrence(
            store, "hh-1", NOW, "expense_8_1006", status=PaidStatus.PENDING, actual_amount=Decimal("45")
        )
        assert outcome.result.lowest_point == Decimal("255")

    def test_paying_a_bill_updates_progress(self, store):
        _paid_income(store)
        outcome = mark_occurrence(store, "hh-1", NOW, "expense_7_0306")
        assert outcome.result.percent_paid == pytest.approx(1200 / 1230)
        assert outcome.result.unpaid_count == 1

    def test_restoring_nothing_is_harmless(self, store):
        before = run_projection(store, "hh-1", NOW)
        assert restore_occurrence(store, "hh-1", NOW, "expense_7_0306") == before

    def test_malformed_key_is_rejected(self, store):
        with pytest.raises(ValueError):
            mark_occurrence(store, "hh-1", NOW, "rent-june")
        assert store.progress_for_cycle("hh-1", "2024-05-24") == []

    def test_limit_risk(self, household):
        household.budget_cycles = [{"cycle_start": "2024-05-24", "current_balance": "100", "bank_account_id": "acc-1"}]
        store = InMemoryStore({"hh-1": household})
        outcome = _paid_income(store)
        assert outcome.report.severity is Severity.LIMIT_RISK
        assert outcome.report.overdraft_limit == Decimal("100")
        assert outcome.report.remedy.deadline == date(2024, 6, 3)
        assert outcome.report.remedy.amount_to_clear == Decimal("1130")


class TestUpcomingReminders:
    def test_only_outgoing_items(self, store):
        assert [o.name for o in upcoming_reminders(store, "hh-1", date(2024, 5, 31))] == ["Rent"]
        assert upcoming_reminders(store, "hh-1", date(2024, 6, 22)) == []

    def test_cancelled_bill_is_not_reminded(self, store):
        mark_occurrence(store, "hh-1", NOW, "expense_7_0306", status=PaidStatus.CANCELLED)
        assert upcoming_reminders(store, "hh-1", date(2024, 5, 31)) == []

    def test_lookahead_from_config(self, store):
        config = EngineConfig(reminder_lookahead_days=2)
        assert [o.name for o in upcoming_reminders(store, "hh-1", date(2024, 6, 1), config=config)] == ["Rent"]


class TestDebtRanking:
    def test_ranks_cards_and_loans(self, household):
        household.cards = [{"id": "c1", "card_name": "Visa", "current_balance": "500", "apr": "18"}]
        household.loans = [
            {"id": 5, "name": "Car", "category_id": "vehicle_finance",
             "metadata": {"remaining_balance": 2000, "interest_rate": 5}},
        ]
        ranking = debt_ranking(InMemoryStore({"hh-1": household}), "hh-1")
        assert ranking.recommended == "avalanche"
        assert [d.id for d in ranking.avalanche_order] == ["c1", "5"]

    def test_threshold_from_config(self, household):
        household.cards = [{"id": "c1", "current_balance": "500", "apr": "18"}]
        config = EngineConfig(avalanche_rate_threshold=20.0)
        assert debt_ranking(InMemoryStore({"hh-1": household}), "hh-1", config=config).recommended == "snowball"

    def test_no_debts(self, store):
        assert debt_ranking(store, "hh-1").recommended == "none"
