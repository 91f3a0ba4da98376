"""Type definitions for the time and pay pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping


class BreakCalculationMode(str, Enum):
    """How break rules are applied to shifts."""

    PER_SHIFT = "PER_SHIFT"
    PER_DAY = "PER_DAY"


@dataclass(frozen=True)
class BreakRule:
    """Unpaid break granted once a duration reaches ``min_hours``."""

    min_hours: Decimal
    break_minutes: int

    def __post_init__(self) -> None:
        if self.min_hours < 0:
            raise ValueError(f"min_hours must be >= 0, got {self.min_hours}")
        if self.break_minutes < 0:
            raise ValueError(f"break_minutes must be >= 0, got {self.break_minutes}")


@dataclass(frozen=True)
class BreakRuleSet:
    """Threshold table of break rules, one rule per ``min_hours``.

    Rules are held sorted by threshold whichever way the set is built.
    Duplicate thresholds collapse deterministically (the last rule for a
    threshold wins).
    """

    rules: tuple[BreakRule, ...] = ()

    def __post_init__(self) -> None:
        by_threshold: dict[Decimal, BreakRule] = {}
        for rule in self.rules:
            by_threshold[rule.min_hours] = rule
        ordered = tuple(sorted(by_threshold.values(), key=lambda r: r.min_hours))
        object.__setattr__(self, "rules", ordered)

    @classmethod
    def from_rules(cls, rules: Iterable[BreakRule]) -> BreakRuleSet:
        return cls(tuple(rules))

    @property
    def is_empty(self) -> bool:
        return len(self.rules) == 0

    def __len__(self) -> int:
        return len(self.rules)


DEFAULT_BREAK_RULES = BreakRuleSet.from_rules(
    [
        BreakRule(Decimal("4"), 15),
        BreakRule(Decimal("6"), 30),
        BreakRule(Decimal("8"), 60),
    ]
)


@dataclass(frozen=True)
class BreakPolicy:
    """Organization break configuration plus per-location overrides."""

    rules: BreakRuleSet = DEFAULT_BREAK_RULES
    mode: BreakCalculationMode = BreakCalculationMode.PER_SHIFT
    location_rules: Mapping[str, BreakRuleSet] = field(default_factory=dict)


@dataclass(frozen=True)
class BreakResolution:
    """Result of resolving breaks for one day's shifts.

    ``per_shift`` is populated in PER_SHIFT mode, ``daily_minutes`` in
    PER_DAY mode.
    """

    mode: BreakCalculationMode
    per_shift: Mapping[str, int] = field(default_factory=dict)
    daily_minutes: int | None = None


@dataclass(frozen=True)
class RateOverride:
    """Employee-specific hourly rate for one category."""

    employee_id: str
    category_id: str
    hourly_rate: Decimal

    def __post_init__(self) -> None:
        if self.hourly_rate < 0:
            raise ValueError(f"hourly_rate must be >= 0, got {self.hourly_rate}")


@dataclass(frozen=True)
class PayPeriod:
    """Organization-defined pay period, both ends inclusive."""

    name: str
    start_date: date
    end_date: date
    pay_date: date | None = None

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError(
                f"Pay period '{self.name}' ends ({self.end_date}) "
                f"before it starts ({self.start_date})"
            )

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class RawTimeEntry:
    """A clock-in/clock-out record with denormalized display fields."""

    entry_id: str
    employee_id: str
    employee_name: str
    clock_in: datetime
    clock_out: datetime | None
    total_break_minutes: int = 0
    employee_email: str = ""
    category_id: str | None = None
    category_name: str | None = None
    category_rate: Decimal | None = None
    location_id: str | None = None
    location_name: str | None = None
    status: str = ""
    notes: str = ""

    @property
    def is_complete(self) -> bool:
        return self.clock_out is not None

    @property
    def is_categorized(self) -> bool:
        """A category counts only when it has both an id and a display name."""
        return bool(self.category_id) and bool(self.category_name)


@dataclass(frozen=True)
class CalculatedEntry:
    """A time entry with hours, rate and pay resolved (never persisted)."""

    entry_id: str
    employee_id: str
    employee_name: str
    employee_email: str
    work_date: date
    clock_in: datetime
    clock_out: datetime
    recorded_break_minutes: int
    break_minutes: int
    gross_hours: Decimal
    net_hours: Decimal
    category_name: str
    effective_rate: Decimal
    total_pay: Decimal
    pay_period: str
    location_name: str = ""
    status: str = ""
    notes: str = ""


@dataclass(frozen=True)
class DayBreakDeduction:
    """Single PER_DAY break deduction for one employee's working day.

    ``deduction_hours`` is the part of the rule break not already covered by
    breaks recorded on that day's entries.
    """

    employee_id: str
    work_date: date
    gross_hours: Decimal
    rule_break_minutes: int
    recorded_break_minutes: int
    deduction_hours: Decimal


@dataclass(frozen=True)
class ExportRequest:
    """Already-authorized, already-loaded inputs for one export."""

    entries: tuple[RawTimeEntry, ...]
    start_date: date
    end_date: date
    break_policy: BreakPolicy = field(default_factory=BreakPolicy)
    pay_periods: tuple[PayPeriod, ...] = ()
    rate_overrides: tuple[RateOverride, ...] = ()
    location_id: str | None = None
    timezone: str | None = None


@dataclass(frozen=True)
class TimesheetCalculation:
    """Calculated entries plus any PER_DAY deductions for one export."""

    entries: tuple[CalculatedEntry, ...]
    day_deductions: tuple[DayBreakDeduction, ...]
    mode: BreakCalculationMode
    start_date: date
    end_date: date
    pay_periods: tuple[PayPeriod, ...] = ()
    timezone: str | None = None
