from datetime import date

import pytest

from engine.store import InMemoryStore, TenantData
from schedule.cycle import CycleWindow


@pytest.fixture
def june_cycle():
    return CycleWindow(start=date(2024, 6, 1), end=date(2024, 6, 30), raw_start=date(2024, 6, 1))


@pytest.fixture
def household():
    """Paid on the 25th; rent on the 1st sliding to a working day; phone on the 10th."""
    return TenantData(
        obligations=[
            {"id": 1, "kind": "income", "name": "Acme Ltd", "amount": "2000",
             "payment_day": 25, "is_primary": True},
            {"id": 7, "kind": "expense", "name": "Rent", "amount": "1200",
             "frequency": "monthly", "start_date": "2024-01-01", "nearest_working_day": 1},
            {"id": 8, "kind": "expense", "name": "Phone", "amount": "30",
             "frequency": "monthly", "start_date": "2024-01-10"},
        ],
        budget_cycles=[
            {"cycle_start": "2024-04-25", "current_balance": "900", "bank_account_id": "acc-1"},
            {"cycle_start": "2024-05-24", "current_balance": "1500", "bank_account_id": "acc-1"},
        ],
        accounts=[
            {"id": "acc-0", "account_name": "Savings", "overdraft_limit": "0"},
            {"id": "acc-1", "account_name": "Current", "overdraft_limit": "-100"},
        ],
        holidays=["2024-05-27"],
    )


@pytest.fixture
def store(household):
    return InMemoryStore({"hh-1": household})
