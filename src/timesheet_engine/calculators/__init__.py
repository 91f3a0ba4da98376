"""Time and pay calculators."""

from timesheet_engine.calculators.break_resolver import BreakResolver, parse_break_rules
from timesheet_engine.calculators.pay_periods import PayPeriodResolver
from timesheet_engine.calculators.rate_resolver import RateResolver
from timesheet_engine.calculators.time_entry import TimeEntryCalculator

__all__ = [
    "BreakResolver",
    "PayPeriodResolver",
    "RateResolver",
    "TimeEntryCalculator",
    "parse_break_rules",
]
