"""
Engine configuration.
Every tunable constant of the obligation engine lives here; components take
the single values they need as keyword arguments with these defaults.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_REMINDER_LOOKAHEAD_DAYS = 3
DEFAULT_AVALANCHE_RATE_THRESHOLD = 15.0
DEFAULT_BUDGET_MONTH_ROLLOVER_DAY = 20
DEFAULT_ADJUSTMENT_LOOKBACK_DAYS = 14
DEFAULT_HOLIDAY_DIVISION = "england-and-wales"


@dataclass(frozen=True)
class EngineConfig:
    # reminders fire for occurrences exactly this many days ahead
    reminder_lookahead_days: int = DEFAULT_REMINDER_LOOKAHEAD_DAYS

    # highest debt rate (percent) above which avalanche is recommended
    avalanche_rate_threshold: float = DEFAULT_AVALANCHE_RATE_THRESHOLD

    # a cycle whose raw start day is on/after this is budgeted as next month
    budget_month_rollover_day: int = DEFAULT_BUDGET_MONTH_ROLLOVER_DAY

    # how far before a window a raw date may sit and still slide into it
    adjustment_lookback_days: int = DEFAULT_ADJUSTMENT_LOOKBACK_DAYS

    # nightly batch worker pool size
    max_workers: int = 4

    # division read from a UK bank-holiday payload
    holiday_division: str = DEFAULT_HOLIDAY_DIVISION
