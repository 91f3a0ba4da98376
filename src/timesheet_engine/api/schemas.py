"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from timesheet_engine.calculators.break_resolver import parse_break_rules
from timesheet_engine.calculators.types import (
    DEFAULT_BREAK_RULES,
    BreakCalculationMode,
    BreakPolicy,
    ExportRequest,
    PayPeriod,
    RateOverride,
    RawTimeEntry,
)


# ============================================================================
# Export request schemas
# ============================================================================


class TimeEntryIn(BaseModel):
    """Completed or open time entry with denormalized display fields."""

    id: str
    employee_id: str
    employee_name: str
    employee_email: str = ""
    clock_in: datetime
    clock_out: datetime | None = None
    total_break_minutes: int = Field(default=0, ge=0)
    category_id: str | None = None
    category_name: str | None = None
    category_rate: Decimal | None = Field(default=None, ge=0)
    location_id: str | None = None
    location_name: str | None = None
    status: str = ""
    notes: str = ""

    @model_validator(mode="after")
    def check_clock_times(self) -> "TimeEntryIn":
        if self.clock_out is None:
            return self
        if (self.clock_in.tzinfo is None) != (self.clock_out.tzinfo is None):
            raise ValueError("clock_in and clock_out must both be timezone-aware or both naive")
        if self.clock_out < self.clock_in:
            raise ValueError("clock_out must not be before clock_in")
        return self

    def to_domain(self) -> RawTimeEntry:
        return RawTimeEntry(
            entry_id=self.id,
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            employee_email=self.employee_email,
            clock_in=self.clock_in,
            clock_out=self.clock_out,
            total_break_minutes=self.total_break_minutes,
            category_id=self.category_id,
            category_name=self.category_name,
            category_rate=self.category_rate,
            location_id=self.location_id,
            location_name=self.location_name,
            status=self.status,
            notes=self.notes,
        )


class LocationBreakRulesIn(BaseModel):
    """Per-location break rule override as stored (JSON text or list)."""

    location_id: str
    break_rules: Any = None


class BreakSettingsIn(BaseModel):
    """Organization break settings.

    ``break_rules`` left out means the organization default; malformed
    rules mean no breaks.
    """

    break_rules: Any = None
    break_calculation_mode: BreakCalculationMode = BreakCalculationMode.PER_SHIFT
    locations: list[LocationBreakRulesIn] = Field(default_factory=list)

    def to_domain(self) -> BreakPolicy:
        rules = (
            DEFAULT_BREAK_RULES
            if self.break_rules is None
            else parse_break_rules(self.break_rules)
        )
        return BreakPolicy(
            rules=rules,
            mode=self.break_calculation_mode,
            location_rules={
                loc.location_id: parse_break_rules(loc.break_rules)
                for loc in self.locations
            },
        )


class PayPeriodIn(BaseModel):
    """Pay period, both ends inclusive."""

    name: str
    start_date: date
    end_date: date
    pay_date: date | None = None

    @model_validator(mode="after")
    def check_range(self) -> "PayPeriodIn":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def to_domain(self) -> PayPeriod:
        return PayPeriod(
            name=self.name,
            start_date=self.start_date,
            end_date=self.end_date,
            pay_date=self.pay_date,
        )


class RateOverrideIn(BaseModel):
    """Employee-specific rate for a category."""

    employee_id: str
    category_id: str
    hourly_rate: Decimal = Field(ge=0)

    def to_domain(self) -> RateOverride:
        return RateOverride(
            employee_id=self.employee_id,
            category_id=self.category_id,
            hourly_rate=self.hourly_rate,
        )


class ExportRequestIn(BaseModel):
    """Schema for a timesheet export request.

    Pay periods are matched in the order given here: the first period
    containing a date labels it.
    """

    start_date: date
    end_date: date
    location_id: str | None = None
    timezone: str | None = None
    organization: BreakSettingsIn = Field(default_factory=BreakSettingsIn)
    pay_periods: list[PayPeriodIn] = Field(default_factory=list)
    rate_overrides: list[RateOverrideIn] = Field(default_factory=list)
    entries: list[TimeEntryIn] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone '{value}'")
        return value

    @model_validator(mode="after")
    def check_range(self) -> "ExportRequestIn":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @model_validator(mode="after")
    def check_timestamp_kinds(self) -> "ExportRequestIn":
        # entries are ordered by clock-in, which needs one kind of timestamp
        aware = {e.clock_in.tzinfo is not None for e in self.entries}
        if len(aware) > 1:
            raise ValueError("entries must all use timezone-aware or all naive timestamps")
        return self

    def to_domain(self) -> ExportRequest:
        return ExportRequest(
            entries=tuple(e.to_domain() for e in self.entries),
            start_date=self.start_date,
            end_date=self.end_date,
            break_policy=self.organization.to_domain(),
            pay_periods=tuple(p.to_domain() for p in self.pay_periods),
            rate_overrides=tuple(r.to_domain() for r in self.rate_overrides),
            location_id=self.location_id,
            timezone=self.timezone,
        )


# ============================================================================
# Summary response schemas
# ============================================================================


class SummaryRowResponse(BaseModel):
    """Per-employee totals, rounded for display."""

    employee_id: str
    employee_name: str
    total_net_hours: Decimal
    total_pay: Decimal


class PivotRowResponse(BaseModel):
    """Net hours per category; zero cells are null."""

    label: str
    cells: dict[str, Decimal | None]
    total: Decimal | None


class SummaryResponse(BaseModel):
    """Summary and pivot views without the file rendering."""

    start_date: date
    end_date: date
    mode: BreakCalculationMode
    entry_count: int
    summary: list[SummaryRowResponse]
    categories: list[str]
    pivot: list[PivotRowResponse]
    totals: PivotRowResponse


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
