"""
Raw record loading — plain rows from the household store → engine domain types.

Rows arrive as mappings with the column names the storage layer uses
(``start_date``, ``payment_day``, ``is_active``, ``nearest_working_day``...).
Each row is parsed by a pydantic model; a row that fails is skipped and
reported in a ValidationResult so one bad record never aborts the batch.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from core.schema import (
    BankAccount,
    BudgetCycle,
    Debt,
    Frequency,
    Obligation,
    ObligationKind,
    OneOff,
    PaidStatus,
    Periodic,
    ProgressEntry,
)
from schedule.workdays import HolidayCalendar

from .validators import ValidationResult, validate_obligations

logger = logging.getLogger(__name__)

# Reference month for rows that only give a day of month; January has 31 days
# so any day 1-31 is representable and later months clamp as usual.
_LEGACY_ANCHOR_YEAR = 2000

_KIND_ALIASES = {
    "cost": "expense",
    "bill": "expense",
    "recurring": "expense",
    "credit-card": "card-payment",
    "card": "card-payment",
    "pay": "income",
}

_FREQUENCY_ALIASES = {
    "one-off": "one_off",
    "oneoff": "one_off",
    "once": "one_off",
    "annual": "yearly",
    "annually": "yearly",
}

_DEBT_CATEGORIES = {"loan", "mortgage", "vehicle_finance"}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _finite(value: Optional[Decimal], label: str) -> Optional[Decimal]:
    if value is not None and not value.is_finite():
        raise ValueError(f"{label} must be finite")
    return value


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ObligationRecord(_Record):
    id: str
    kind: ObligationKind = Field(
        default=ObligationKind.EXPENSE, validation_alias=AliasChoices("kind", "type")
    )
    name: str = Field(default="", validation_alias=AliasChoices("name", "employer", "label"))
    amount: Decimal
    frequency: Frequency = Frequency.MONTHLY
    anchor_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("anchor_date", "start_date")
    )
    exact_date: Optional[date] = None
    day_of_month: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("day_of_month", "payment_day")
    )
    adjust_for_working_day: bool = Field(
        default=False,
        validation_alias=AliasChoices("adjust_for_working_day", "nearest_working_day"),
    )
    active: bool = Field(default=True, validation_alias=AliasChoices("active", "is_active"))
    is_primary: bool = False
    bank_account_id: Optional[str] = None

    @field_validator("id", "bank_account_id", mode="before")
    @classmethod
    def _as_text(cls, v):
        return None if v is None else str(v)

    @field_validator("name", mode="before")
    @classmethod
    def _name_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, v):
        if isinstance(v, str):
            text = v.strip().lower().replace("_", "-")
            return _KIND_ALIASES.get(text, text)
        return v

    @field_validator("frequency", mode="before")
    @classmethod
    def _normalize_frequency(cls, v):
        if v is None:
            return Frequency.MONTHLY
        if isinstance(v, str):
            text = v.strip().lower()
            return _FREQUENCY_ALIASES.get(text, text)
        return v

    @field_validator("anchor_date", "exact_date", "day_of_month", "bank_account_id", mode="before")
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator("amount")
    @classmethod
    def _finite_amount(cls, v):
        return _finite(v, "amount")

    @model_validator(mode="after")
    def _check_schedule(self):
        if self.frequency is Frequency.ONE_OFF:
            if self.exact_date is None and self.anchor_date is None:
                raise ValueError("one_off obligation needs an exact_date")
            return self
        if self.anchor_date is None:
            if self.day_of_month is None:
                raise ValueError(f"{self.frequency.value} obligation needs an anchor date")
            if self.frequency is not Frequency.MONTHLY:
                raise ValueError("a bare day of month only anchors monthly obligations")
            if not 1 <= self.day_of_month <= 31:
                raise ValueError(f"day of month {self.day_of_month} is out of range")
        return self

    def to_obligation(self) -> Obligation:
        if self.frequency is Frequency.ONE_OFF:
            schedule = OneOff(on=self.exact_date or self.anchor_date)
        else:
            anchor = self.anchor_date or date(_LEGACY_ANCHOR_YEAR, 1, self.day_of_month)
            schedule = Periodic(frequency=self.frequency, anchor=anchor)
        return Obligation(
            id=self.id,
            kind=self.kind,
            amount=self.amount,
            schedule=schedule,
            adjust_for_working_day=self.adjust_for_working_day,
            active=self.active,
            name=self.name,
            is_primary=self.is_primary,
            bank_account_id=self.bank_account_id,
        )


class ProgressRecord(_Record):
    cycle_start: date
    item_key: str
    is_paid: PaidStatus = PaidStatus.PENDING
    actual_amount: Optional[Decimal] = None
    actual_date: Optional[date] = None

    @field_validator("is_paid", mode="before")
    @classmethod
    def _paid_flag(cls, v):
        if v is None or v == "":
            return PaidStatus.PENDING
        if isinstance(v, bool):
            return PaidStatus.PAID if v else PaidStatus.PENDING
        if isinstance(v, str):
            return int(v.strip())
        return v

    @field_validator("actual_amount", "actual_date", mode="before")
    @classmethod
    def _blank(cls, v):
        return _blank_to_none(v)

    @field_validator("actual_amount")
    @classmethod
    def _finite_amount(cls, v):
        return _finite(v, "actual_amount")

    def to_entry(self) -> ProgressEntry:
        return ProgressEntry(
            cycle_start=self.cycle_start,
            item_key=self.item_key,
            status=self.is_paid,
            actual_amount=self.actual_amount,
            actual_date=self.actual_date,
        )


class BudgetCycleRecord(_Record):
    cycle_start: date
    current_balance: Decimal = Decimal("0")
    bank_account_id: Optional[str] = None
    actual_pay: Optional[Decimal] = None

    @field_validator("current_balance", mode="before")
    @classmethod
    def _balance_default(cls, v):
        return Decimal("0") if _blank_to_none(v) is None else v

    @field_validator("bank_account_id", mode="before")
    @classmethod
    def _as_text(cls, v):
        v = _blank_to_none(v)
        return None if v is None else str(v)

    @field_validator("current_balance", "actual_pay")
    @classmethod
    def _finite_amount(cls, v):
        return _finite(v, "balance")

    def to_cycle(self) -> BudgetCycle:
        return BudgetCycle(
            cycle_start=self.cycle_start,
            current_balance=self.current_balance,
            bank_account_id=self.bank_account_id,
            actual_pay=self.actual_pay,
        )


class BankAccountRecord(_Record):
    id: str
    name: str = Field(default="", validation_alias=AliasChoices("name", "account_name"))
    overdraft_limit: Decimal = Decimal("0")

    @field_validator("id", mode="before")
    @classmethod
    def _as_text(cls, v):
        return str(v)

    @field_validator("overdraft_limit", mode="before")
    @classmethod
    def _limit_default(cls, v):
        return Decimal("0") if _blank_to_none(v) is None else v

    def to_account(self) -> BankAccount:
        return BankAccount(id=self.id, name=self.name, overdraft_limit=abs(self.overdraft_limit))


class DebtRecord(_Record):
    id: str
    name: str = Field(default="", validation_alias=AliasChoices("name", "card_name"))
    balance: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("balance", "current_balance", "remaining_balance"),
    )
    rate: Decimal = Field(
        default=Decimal("0"), validation_alias=AliasChoices("rate", "apr", "interest_rate")
    )
    kind: str = Field(default="loan", validation_alias=AliasChoices("kind", "type", "category_id"))

    @field_validator("id", mode="before")
    @classmethod
    def _as_text(cls, v):
        return str(v)

    @field_validator("balance", "rate", mode="before")
    @classmethod
    def _zero_default(cls, v):
        return Decimal("0") if _blank_to_none(v) is None else v

    @field_validator("balance", "rate")
    @classmethod
    def _finite_amount(cls, v):
        return _finite(v, "debt figure")

    def to_debt(self) -> Debt:
        return Debt(id=self.id, name=self.name, balance=self.balance, rate=self.rate, kind=self.kind)


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def _record_label(row: Any) -> str:
    if isinstance(row, Mapping):
        return str(row.get("id", row.get("item_key", "?")))
    return "?"


def _first_error(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        err = exc.errors()[0]
        loc = ".".join(str(p) for p in err.get("loc", ()))
        return f"{loc}: {err['msg']}" if loc else err["msg"]
    return str(exc)


def load_obligations(
    rows: Iterable[Any],
    *,
    kind: Optional[ObligationKind] = None,
) -> Tuple[List[Obligation], ValidationResult]:
    """
    Parse obligation rows, skipping (and reporting) malformed ones.

    Parameters
    ----------
    rows : iterable of mappings or Obligation
        Raw rows; already-built Obligation objects pass straight through.
    kind : ObligationKind, optional
        Forces the kind for rows read from a single-kind table (e.g. incomes).
    """
    result = ValidationResult()
    obligations: List[Obligation] = []
    for row in rows:
        if isinstance(row, Obligation):
            obligations.append(row)
            continue
        try:
            data = dict(row)
            if kind is not None:
                data["kind"] = kind
            obligations.append(ObligationRecord.model_validate(data).to_obligation())
        except (ValidationError, ValueError, TypeError) as exc:
            msg = f"Obligation {_record_label(row)} skipped — {_first_error(exc)}"
            logger.warning(msg)
            result.errors.append(msg)

    result.extend(validate_obligations(obligations))
    return obligations, result


def load_progress(rows: Iterable[Any]) -> Tuple[List[ProgressEntry], ValidationResult]:
    """Parse progress rows; unreadable rows are warnings, never errors."""
    result = ValidationResult()
    entries: List[ProgressEntry] = []
    for row in rows:
        if isinstance(row, ProgressEntry):
            entries.append(row)
            continue
        try:
            entries.append(ProgressRecord.model_validate(row).to_entry())
        except (ValidationError, ValueError, TypeError) as exc:
            msg = f"Progress row {_record_label(row)} ignored — {_first_error(exc)}"
            logger.warning(msg)
            result.warnings.append(msg)
    return entries, result


def load_budget_cycles(rows: Iterable[Any]) -> Tuple[List[BudgetCycle], ValidationResult]:
    result = ValidationResult()
    cycles: List[BudgetCycle] = []
    for row in rows:
        if isinstance(row, BudgetCycle):
            cycles.append(row)
            continue
        try:
            cycles.append(BudgetCycleRecord.model_validate(row).to_cycle())
        except (ValidationError, ValueError, TypeError) as exc:
            msg = f"Budget cycle row ignored — {_first_error(exc)}"
            logger.warning(msg)
            result.warnings.append(msg)
    return cycles, result


def load_accounts(rows: Iterable[Any]) -> Tuple[List[BankAccount], ValidationResult]:
    result = ValidationResult()
    accounts: List[BankAccount] = []
    for row in rows:
        if isinstance(row, BankAccount):
            accounts.append(row)
            continue
        try:
            accounts.append(BankAccountRecord.model_validate(row).to_account())
        except (ValidationError, ValueError, TypeError) as exc:
            msg = f"Bank account {_record_label(row)} ignored — {_first_error(exc)}"
            logger.warning(msg)
            result.warnings.append(msg)
    return accounts, result


def load_debts(
    cards: Iterable[Mapping] = (),
    loans: Iterable[Mapping] = (),
) -> Tuple[List[Debt], ValidationResult]:
    """
    Outstanding debts from credit-card rows and loan-like recurring costs.

    Loan rows keep balance and rate in a ``metadata`` blob (dict or JSON text)
    as ``remaining_balance`` / ``interest_rate``. Recurring costs outside the
    loan categories and debts with no positive balance are dropped.
    """
    result = ValidationResult()
    debts: List[Debt] = []

    for row in cards:
        _append_debt(debts, result, {**row, "kind": "credit_card"})

    for row in loans:
        category = row.get("category_id") or row.get("kind") or row.get("type")
        if category not in _DEBT_CATEGORIES:
            continue
        meta = row.get("metadata") or {}
        if isinstance(meta, str):
            try:
                meta = json.loads(meta)
            except json.JSONDecodeError:
                msg = f"Debt {_record_label(row)} has unreadable metadata; skipped."
                logger.warning(msg)
                result.warnings.append(msg)
                continue
        data = {
            "id": row.get("id"),
            "name": row.get("name", ""),
            "kind": category,
            "balance": meta.get("remaining_balance"),
            "rate": meta.get("interest_rate"),
        }
        _append_debt(debts, result, data)

    return [d for d in debts if d.balance > 0], result


def _append_debt(debts: List[Debt], result: ValidationResult, data: Mapping) -> None:
    try:
        debts.append(DebtRecord.model_validate(data).to_debt())
    except (ValidationError, ValueError, TypeError) as exc:
        msg = f"Debt {_record_label(data)} ignored — {_first_error(exc)}"
        logger.warning(msg)
        result.warnings.append(msg)


def load_holidays(source: Any, *, division: Optional[str] = None) -> HolidayCalendar:
    """
    Holiday calendar from either a list of ISO date strings or a UK
    bank-holiday payload. None (feed unavailable) gives weekend-only.
    """
    if source is None:
        logger.info("No holiday list supplied; using weekend-only calendar.")
        return HolidayCalendar.weekends_only()
    if isinstance(source, HolidayCalendar):
        return source
    if isinstance(source, Mapping):
        if division is None:
            return HolidayCalendar.from_gov_uk_payload(source)
        return HolidayCalendar.from_gov_uk_payload(source, division)
    return HolidayCalendar(source)
