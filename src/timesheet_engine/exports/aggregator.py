"""Export aggregation: detail, summary, pivot and payroll views."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from itertools import groupby
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from timesheet_engine.calculators.pay_periods import PayPeriodResolver
from timesheet_engine.calculators.rounding import ZERO, Rounding
from timesheet_engine.calculators.types import (
    CalculatedEntry,
    DayBreakDeduction,
    TimesheetCalculation,
)
from timesheet_engine.config import Settings, get_settings

logger = logging.getLogger(__name__)

TOTAL_COLUMN = "Total"
TOTAL_ROW = "TOTAL"


def display_name_key(name: str) -> tuple[str, str]:
    """Case-insensitive sort key that stays deterministic for equal folds."""
    return (name.casefold(), name)


@dataclass(frozen=True)
class DetailRow:
    """One calculated entry formatted for display."""

    employee_name: str
    employee_email: str
    location: str
    date: str
    clock_in: str
    clock_out: str
    break_minutes: int
    gross_hours: Decimal
    net_hours: Decimal
    category: str
    hourly_rate: Decimal
    total_pay: Decimal
    status: str
    notes: str

    def values(self) -> tuple:
        return (
            self.employee_name,
            self.employee_email,
            self.location,
            self.date,
            self.clock_in,
            self.clock_out,
            self.break_minutes,
            self.gross_hours,
            self.net_hours,
            self.category,
            self.hourly_rate,
            self.total_pay,
            self.status,
            self.notes,
        )


@dataclass(frozen=True)
class CategoryDayBucket:
    """Net hours for one (employee, date, category), ready for payroll import."""

    employee_id: str
    employee_name: str
    employee_email: str
    work_date: date
    category_name: str
    rate: Decimal
    gross_hours: Decimal
    net_hours: Decimal
    pay_period: str

    @property
    def amount(self) -> Decimal:
        return self.net_hours * self.rate


@dataclass(frozen=True)
class SummaryRow:
    """Unrounded totals for one employee."""

    employee_id: str
    employee_name: str
    total_net_hours: Decimal
    total_pay: Decimal


@dataclass(frozen=True)
class PivotRow:
    label: str
    cells: tuple[Decimal, ...]
    total: Decimal


@dataclass(frozen=True)
class PivotTable:
    """Net hours by employee (rows) and category (columns)."""

    categories: tuple[str, ...]
    rows: tuple[PivotRow, ...]
    totals: PivotRow

    @property
    def columns(self) -> tuple[str, ...]:
        return self.categories + (TOTAL_COLUMN,)

    @property
    def grand_total(self) -> Decimal:
        return self.totals.total


@dataclass(frozen=True)
class AggregatedExport:
    """All derived views for one export request."""

    detail: tuple[DetailRow, ...]
    summary: tuple[SummaryRow, ...]
    pivot: PivotTable
    payroll: tuple[CategoryDayBucket, ...]


class ExportAggregator:
    """Groups calculated entries into the export views.

    Every view is built from sorted input with groupby folds, so the same
    calculation always yields the same output. Values stay unrounded here;
    rounding to 2 decimals happens in the detail rows and the formatter.

    In PER_DAY mode the day deductions are not attributed to any entry.
    They reduce the (employee, date, category) buckets of that day in
    proportion to each bucket's gross hours, and the summary and pivot are
    built from those buckets.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def aggregate(self, calculation: TimesheetCalculation) -> AggregatedExport:
        tz = ZoneInfo(calculation.timezone) if calculation.timezone else None
        ordered = self.sort_entries(calculation.entries)
        buckets = self.build_buckets(
            ordered,
            calculation.day_deductions,
            PayPeriodResolver(calculation.pay_periods),
        )
        return AggregatedExport(
            detail=tuple(self.detail_row(entry, tz) for entry in ordered),
            summary=self.build_summary(buckets),
            pivot=self.build_pivot(buckets),
            payroll=buckets,
        )

    @staticmethod
    def sort_entries(entries: Iterable[CalculatedEntry]) -> list[CalculatedEntry]:
        """Order by employee display name, then clock-in."""
        return sorted(
            entries,
            key=lambda e: (display_name_key(e.employee_name), e.employee_id, e.clock_in),
        )

    def detail_row(self, entry: CalculatedEntry, tz: ZoneInfo | None = None) -> DetailRow:
        return DetailRow(
            employee_name=entry.employee_name,
            employee_email=entry.employee_email,
            location=entry.location_name,
            date=entry.work_date.strftime(self.settings.date_format),
            clock_in=self._time(entry.clock_in, tz),
            clock_out=self._time(entry.clock_out, tz),
            break_minutes=entry.break_minutes,
            gross_hours=Rounding.round_to_cents(entry.gross_hours),
            net_hours=Rounding.round_to_cents(entry.net_hours),
            category=entry.category_name,
            hourly_rate=Rounding.round_to_cents(entry.effective_rate),
            total_pay=Rounding.round_to_cents(entry.total_pay),
            status=entry.status,
            notes=entry.notes,
        )

    def _time(self, moment: datetime | None, tz: ZoneInfo | None) -> str:
        if moment is None:
            return ""
        if moment.tzinfo is not None and tz is not None:
            moment = moment.astimezone(tz)
        return moment.strftime(self.settings.time_format)

    def build_buckets(
        self,
        entries: Sequence[CalculatedEntry],
        day_deductions: Iterable[DayBreakDeduction] = (),
        pay_periods: PayPeriodResolver | None = None,
    ) -> tuple[CategoryDayBucket, ...]:
        """Merge clock sessions per (employee, date, category).

        Net hours are summed before the rate is applied. Each bucket's pay
        period label is resolved once.
        """
        pay_periods = pay_periods or PayPeriodResolver()

        def bucket_key(e: CalculatedEntry) -> tuple:
            return (
                display_name_key(e.employee_name),
                e.employee_id,
                e.work_date,
                display_name_key(e.category_name),
            )

        buckets = [
            self._merge(list(group), pay_periods)
            for _, group in groupby(sorted(entries, key=bucket_key), key=bucket_key)
        ]

        deductions = {
            key: sum((d.deduction_hours for d in group), ZERO)
            for key, group in groupby(
                sorted(day_deductions, key=lambda d: (d.employee_id, d.work_date)),
                key=lambda d: (d.employee_id, d.work_date),
            )
        }
        if not deductions:
            return tuple(buckets)

        def day_key(b: CategoryDayBucket) -> tuple[str, date]:
            return (b.employee_id, b.work_date)

        # buckets are contiguous per (employee, date) because of the sort above
        return tuple(
            bucket
            for key, group in groupby(buckets, key=day_key)
            for bucket in self._apply_deduction(list(group), deductions.get(key, ZERO))
        )

    @staticmethod
    def _merge(
        entries: list[CalculatedEntry], pay_periods: PayPeriodResolver
    ) -> CategoryDayBucket:
        first = entries[0]
        rates = {e.effective_rate for e in entries}
        if len(rates) > 1:
            logger.warning(
                "Employee %s has differing rates %s for '%s' on %s; using %s",
                first.employee_id,
                sorted(rates),
                first.category_name,
                first.work_date,
                first.effective_rate,
            )
        return CategoryDayBucket(
            employee_id=first.employee_id,
            employee_name=first.employee_name,
            employee_email=first.employee_email,
            work_date=first.work_date,
            category_name=first.category_name,
            rate=first.effective_rate,
            gross_hours=sum((e.gross_hours for e in entries), ZERO),
            net_hours=sum((e.net_hours for e in entries), ZERO),
            pay_period=pay_periods.label_for(first.work_date),
        )

    @staticmethod
    def _apply_deduction(
        day_buckets: list[CategoryDayBucket], deduction: Decimal
    ) -> list[CategoryDayBucket]:
        """Spread a day deduction over its buckets by share of gross hours."""
        day_gross = sum((b.gross_hours for b in day_buckets), ZERO)
        if deduction <= 0 or day_gross <= 0:
            return day_buckets

        shares = [
            Rounding.internal(deduction * b.gross_hours / day_gross)
            for b in day_buckets[:-1]
        ]
        shares.append(deduction - sum(shares, ZERO))

        return [
            replace(b, net_hours=max(ZERO, b.net_hours - share))
            for b, share in zip(day_buckets, shares)
        ]

    @staticmethod
    def build_summary(buckets: Sequence[CategoryDayBucket]) -> tuple[SummaryRow, ...]:
        """Totals per employee, in display-name order."""
        return tuple(
            SummaryRow(
                employee_id=employee_id,
                employee_name=rows[0].employee_name,
                total_net_hours=sum((b.net_hours for b in rows), ZERO),
                total_pay=sum((b.amount for b in rows), ZERO),
            )
            for employee_id, rows in (
                (key, list(group))
                for key, group in groupby(buckets, key=lambda b: b.employee_id)
            )
        )

    @staticmethod
    def build_pivot(buckets: Sequence[CategoryDayBucket]) -> PivotTable:
        """Cross-tabulate net hours by employee and category."""
        categories = tuple(
            sorted({b.category_name for b in buckets}, key=display_name_key)
        )

        def row_for(label: str, rows: list[CategoryDayBucket]) -> PivotRow:
            cells = tuple(
                sum((b.net_hours for b in rows if b.category_name == category), ZERO)
                for category in categories
            )
            return PivotRow(label=label, cells=cells, total=sum(cells, ZERO))

        rows = tuple(
            row_for(group_rows[0].employee_name, group_rows)
            for group_rows in (
                list(group) for _, group in groupby(buckets, key=lambda b: b.employee_id)
            )
        )

        column_totals = tuple(
            sum((row.cells[i] for row in rows), ZERO) for i in range(len(categories))
        )
        totals = PivotRow(
            label=TOTAL_ROW,
            cells=column_totals,
            total=sum(column_totals, ZERO),
        )
        return PivotTable(categories=categories, rows=rows, totals=totals)
