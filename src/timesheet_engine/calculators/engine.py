"""Time and pay engine - main orchestrator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from itertools import groupby
from zoneinfo import ZoneInfo

from timesheet_engine.calculators.break_resolver import BreakResolver
from timesheet_engine.calculators.pay_periods import PayPeriodResolver
from timesheet_engine.calculators.rate_resolver import RateResolver
from timesheet_engine.calculators.rounding import ZERO, Rounding
from timesheet_engine.calculators.time_entry import TimeEntryCalculator
from timesheet_engine.calculators.types import (
    BreakCalculationMode,
    BreakPolicy,
    BreakRuleSet,
    CalculatedEntry,
    DayBreakDeduction,
    ExportRequest,
    RawTimeEntry,
    TimesheetCalculation,
)
from timesheet_engine.config import Settings, get_settings
from timesheet_engine.exports.aggregator import ExportAggregator
from timesheet_engine.exports.formatter import (
    ExportKind,
    ExportResult,
    PayrollExportFormatter,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PreparedEntry:
    """A completed entry with its rate, rule set and day already resolved."""

    entry: RawTimeEntry
    rate: Decimal
    rules: BreakRuleSet
    rules_scope: str | None  # overriding location id, None for organization
    work_date: date
    gross_hours: Decimal


class TimesheetEngine:
    """Turns raw time entries into a payroll export.

    Calculation pipeline (stable order per request):
    1) Drop open entries and entries outside the requested range/location
    2) Resolve each entry's effective rate and break rule set
    3) Resolve breaks per shift (PER_SHIFT) or per working day (PER_DAY)
    4) Calculate gross hours, net hours and pay per entry
    5) Aggregate into detail, summary, pivot and payroll views
    6) Format the requested output kind
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.break_resolver = BreakResolver()
        self.aggregator = ExportAggregator(self.settings)
        self.formatter = PayrollExportFormatter(self.settings)

    def export(self, request: ExportRequest, kind: ExportKind | str) -> ExportResult:
        """Calculate, aggregate and format one export."""
        kind = self.formatter.coerce_kind(kind)
        calculation = self.calculate(request)
        aggregated = self.aggregator.aggregate(calculation)
        content = self.formatter.format(aggregated, kind)

        logger.info(
            "Built %s export for %s to %s: %d entries, %d employees",
            kind.value,
            request.start_date,
            request.end_date,
            len(calculation.entries),
            len(aggregated.summary),
        )

        return ExportResult(
            content=content,
            kind=kind,
            filename=self.formatter.filename_for(kind, request.start_date, request.end_date),
            media_type=self.formatter.media_type_for(kind),
        )

    def calculate(self, request: ExportRequest) -> TimesheetCalculation:
        """Calculate every completed entry in the request."""
        tz = self._zone(request.timezone)
        calculator = TimeEntryCalculator(PayPeriodResolver(request.pay_periods), tz)
        rate_resolver = RateResolver(request.rate_overrides)
        policy = request.break_policy

        prepared = [
            self._prepare(entry, calculator, rate_resolver, policy)
            for entry in self._select_entries(request, calculator)
        ]

        if policy.mode == BreakCalculationMode.PER_DAY:
            entries = tuple(
                calculator.calculate(p.entry, p.rate, p.entry.total_break_minutes)
                for p in prepared
            )
            deductions = self._day_deductions(prepared, policy.mode)
        else:
            entries = tuple(self._calculate_per_shift(prepared, calculator, policy.mode))
            deductions = ()

        return TimesheetCalculation(
            entries=entries,
            day_deductions=deductions,
            mode=policy.mode,
            start_date=request.start_date,
            end_date=request.end_date,
            pay_periods=request.pay_periods,
            timezone=tz.key,
        )

    def _zone(self, name: str | None) -> ZoneInfo:
        return ZoneInfo(name or self.settings.timezone)

    def _select_entries(
        self, request: ExportRequest, calculator: TimeEntryCalculator
    ) -> list[RawTimeEntry]:
        """Completed entries clocked in within the range (and location)."""
        selected: list[RawTimeEntry] = []
        for entry in request.entries:
            if not entry.is_complete:
                logger.debug("Skipping open time entry %s", entry.entry_id)
                continue
            day = calculator.work_date(entry)
            if not request.start_date <= day <= request.end_date:
                logger.debug("Skipping time entry %s outside range (%s)", entry.entry_id, day)
                continue
            if request.location_id is not None and entry.location_id != request.location_id:
                continue
            selected.append(entry)
        return selected

    def _prepare(
        self,
        entry: RawTimeEntry,
        calculator: TimeEntryCalculator,
        rate_resolver: RateResolver,
        policy: BreakPolicy,
    ) -> _PreparedEntry:
        rules, _ = self.break_resolver.effective_rules(policy, entry.location_id)
        scope = entry.location_id if self.break_resolver.has_override(policy, entry.location_id) else None
        return _PreparedEntry(
            entry=entry,
            rate=rate_resolver.resolve(
                entry.employee_id,
                entry.category_id if entry.is_categorized else None,
                entry.category_rate,
            ),
            rules=rules,
            rules_scope=scope,
            work_date=calculator.work_date(entry),
            gross_hours=calculator.gross_hours(entry),
        )

    def _calculate_per_shift(
        self,
        prepared: list[_PreparedEntry],
        calculator: TimeEntryCalculator,
        mode: BreakCalculationMode,
    ) -> list[CalculatedEntry]:
        """Each entry loses the larger of its recorded and its rule break."""
        results: list[CalculatedEntry] = []
        for p in prepared:
            resolution = self.break_resolver.resolve(
                p.rules, mode, {p.entry.entry_id: p.gross_hours}
            )
            rule_minutes = resolution.per_shift[p.entry.entry_id]
            applied = max(p.entry.total_break_minutes, rule_minutes)
            results.append(calculator.calculate(p.entry, p.rate, applied))
        return results

    def _day_deductions(
        self,
        prepared: list[_PreparedEntry],
        mode: BreakCalculationMode,
    ) -> tuple[DayBreakDeduction, ...]:
        """One deduction per employee, day and effective rule set.

        The deduction covers whatever part of the day's rule break was not
        already taken as recorded breaks on the day's entries.
        """

        def day_key(p: _PreparedEntry) -> tuple[str, date, str]:
            return (p.entry.employee_id, p.work_date, p.rules_scope or "")

        deductions: list[DayBreakDeduction] = []
        for (employee_id, work_date, _), group in groupby(sorted(prepared, key=day_key), key=day_key):
            day_entries = list(group)
            resolution = self.break_resolver.resolve(
                day_entries[0].rules,
                mode,
                {p.entry.entry_id: p.gross_hours for p in day_entries},
            )
            rule_minutes = resolution.daily_minutes or 0
            recorded = sum(p.entry.total_break_minutes for p in day_entries)
            gross = sum((p.gross_hours for p in day_entries), ZERO)
            if rule_minutes == 0:
                continue
            shortfall = max(0, rule_minutes - recorded)
            deductions.append(
                DayBreakDeduction(
                    employee_id=employee_id,
                    work_date=work_date,
                    gross_hours=gross,
                    rule_break_minutes=rule_minutes,
                    recorded_break_minutes=recorded,
                    deduction_hours=Rounding.hours_from_minutes(shortfall),
                )
            )
        return tuple(deductions)
