from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List

import pandas as pd
from dateutil.relativedelta import relativedelta

from core.schema import Frequency

_MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}


def to_date(value) -> date:
    """Coerce a date, datetime, Timestamp or ISO string to a plain date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        raise ValueError(f"Unparseable date: {value!r}")
    return ts.date()


def to_decimal(value) -> Decimal:
    """Coerce a number or numeric string to Decimal (via str for floats)."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Unparseable amount: {value!r}") from exc


def round_money(x: Decimal, places: int = 2) -> Decimal:
    """Half away from zero, like a spreadsheet ROUND."""
    return x.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def anchored_day(year: int, month: int, day: int) -> date:
    """``day`` of the given month, clamped to the month's last day."""
    return date(year, month, 1) + relativedelta(day=day)


def step_from_anchor(anchor: date, frequency: Frequency, k: int) -> date:
    """
    The k-th candidate after ``anchor`` (k=0 is the anchor itself).

    Always computed from the anchor rather than the previous candidate, so an
    anchor on the 31st comes back to the 31st after passing through a shorter
    month (relativedelta clamps to the last day).
    """
    if frequency is Frequency.WEEKLY:
        return anchor + timedelta(weeks=k)
    if frequency in _MONTH_STEPS:
        return anchor + relativedelta(months=_MONTH_STEPS[frequency] * k)
    raise ValueError(f"Frequency {frequency!r} has no step.")


def first_index_on_or_after(anchor: date, frequency: Frequency, target: date) -> int:
    """Smallest k >= 0 with step_from_anchor(anchor, frequency, k) >= target."""
    if anchor >= target:
        return 0
    if frequency is Frequency.WEEKLY:
        k = (target - anchor).days // 7
    else:
        months = (target.year - anchor.year) * 12 + (target.month - anchor.month)
        k = max(months // _MONTH_STEPS[frequency] - 1, 0)
    while step_from_anchor(anchor, frequency, k) < target:
        k += 1
    return k


def daterange(start: date, end: date) -> List[date]:
    """Every calendar day from start to end inclusive."""
    if end < start:
        return []
    return [ts.date() for ts in pd.date_range(start, end, freq="D")]
