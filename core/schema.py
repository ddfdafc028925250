"""
Domain types for recurring obligations, their dated occurrences, and progress.

All types are plain frozen dataclasses. Nothing here performs I/O; raw rows
are turned into these types by data_prep.loader.

The one_off vs periodic split is a tagged variant (OneOff | Periodic) so an
obligation can never carry a recurring frequency without an anchor, or an
anchor without a frequency.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional, Union


class ObligationKind(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    CARD_PAYMENT = "card-payment"

    @property
    def is_outgoing(self) -> bool:
        return self is not ObligationKind.INCOME


class Frequency(str, Enum):
    ONE_OFF = "one_off"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class PaidStatus(IntEnum):
    """Stored as -1 / 0 / 1 in progress rows."""

    CANCELLED = -1
    PENDING = 0
    PAID = 1


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OneOff:
    """A single exact date."""

    on: date

    @property
    def frequency(self) -> Frequency:
        return Frequency.ONE_OFF


@dataclass(frozen=True)
class Periodic:
    """A repeating schedule whose phase comes from the anchor date."""

    frequency: Frequency
    anchor: date

    def __post_init__(self) -> None:
        if self.frequency is Frequency.ONE_OFF:
            raise ValueError("Periodic schedule cannot use frequency 'one_off'; use OneOff.")


Schedule = Union[OneOff, Periodic]


# ---------------------------------------------------------------------------
# Obligations and occurrences
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Obligation:
    id: str
    kind: ObligationKind
    amount: Decimal
    schedule: Schedule
    adjust_for_working_day: bool = False
    active: bool = True
    name: str = ""
    is_primary: bool = False
    bank_account_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite():
            raise ValueError(f"Obligation {self.id!r} has a non-finite amount: {self.amount!r}")

    @property
    def frequency(self) -> Frequency:
        return self.schedule.frequency


@dataclass(frozen=True)
class OccurrenceKey:
    """
    Deterministic identity of one occurrence: (kind, obligation id, day, month).

    The same logical occurrence maps to the same key on every recomputation,
    which is what progress rows join on. ``item_key`` is the stored text form
    (``expense_42_1505``); ``parse`` reverses it.
    """

    kind: ObligationKind
    obligation_id: str
    day: int
    month: int

    @classmethod
    def for_date(cls, kind: ObligationKind, obligation_id: str, on: date) -> "OccurrenceKey":
        return cls(kind=kind, obligation_id=str(obligation_id), day=on.day, month=on.month)

    @property
    def item_key(self) -> str:
        return f"{self.kind.value}_{self.obligation_id}_{self.day:02d}{self.month:02d}"

    @classmethod
    def parse(cls, item_key: str) -> "OccurrenceKey":
        try:
            kind_text, rest = item_key.split("_", 1)
            obligation_id, ddmm = rest.rsplit("_", 1)
            kind = ObligationKind(kind_text)
        except ValueError as exc:
            raise ValueError(f"Malformed item key: {item_key!r}") from exc
        if len(ddmm) != 4 or not ddmm.isdigit() or not obligation_id:
            raise ValueError(f"Malformed item key: {item_key!r}")
        day, month = int(ddmm[:2]), int(ddmm[2:])
        if not (1 <= day <= 31 and 1 <= month <= 12):
            raise ValueError(f"Malformed item key: {item_key!r}")
        return cls(kind=kind, obligation_id=obligation_id, day=day, month=month)

    def __str__(self) -> str:
        return self.item_key


@dataclass(frozen=True)
class Occurrence:
    """One concrete dated instance of an obligation (derived, never stored)."""

    obligation_id: str
    kind: ObligationKind
    due_date: date
    amount: Decimal
    name: str = ""

    @property
    def key(self) -> OccurrenceKey:
        return OccurrenceKey.for_date(self.kind, self.obligation_id, self.due_date)


@dataclass(frozen=True)
class ProgressEntry:
    cycle_start: date
    item_key: str
    status: PaidStatus = PaidStatus.PENDING
    actual_amount: Optional[Decimal] = None
    actual_date: Optional[date] = None


@dataclass(frozen=True)
class AnnotatedOccurrence:
    """An occurrence with its recorded progress applied."""

    occurrence: Occurrence
    amount: Decimal
    status: PaidStatus
    effective_date: date

    @property
    def key(self) -> OccurrenceKey:
        return self.occurrence.key

    @property
    def is_paid(self) -> bool:
        return self.status is PaidStatus.PAID


# ---------------------------------------------------------------------------
# Cycle snapshot, accounts, debts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BudgetCycle:
    """Known real-world balance at the start of a cycle (one row per cycle)."""

    cycle_start: date
    current_balance: Decimal
    bank_account_id: Optional[str] = None
    actual_pay: Optional[Decimal] = None


@dataclass(frozen=True)
class BankAccount:
    id: str
    name: str = ""
    overdraft_limit: Decimal = Decimal("0")


@dataclass(frozen=True)
class Debt:
    id: str
    name: str
    balance: Decimal
    rate: Decimal  # annual percent, e.g. 18 for 18%
    kind: str = "loan"
