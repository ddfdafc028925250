"""
Scheduling — working-day calendar, recurrence expansion, and budget cycle resolution.
"""

from .workdays import HolidayCalendar
from .recurrence import expand
from .cycle import CycleWindow, resolve_cycle, primary_pay_day

__all__ = [
    "HolidayCalendar",
    "expand",
    "CycleWindow",
    "resolve_cycle",
    "primary_pay_day",
]
