"""Serialization of aggregated exports to workbook and CSV outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from timesheet_engine.calculators.rounding import Rounding
from timesheet_engine.config import Settings, get_settings
from timesheet_engine.exports.aggregator import AggregatedExport, PivotTable

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"

# Column order and number formatting are fixed by the payroll importer.
PAYROLL_COLUMNS = (
    "Employee Name",
    "Employee Email",
    "Pay Period",
    "Date",
    "Category",
    "Hours",
    "Rate",
    "Amount",
)
PAYROLL_DATE_FORMAT = "%d/%m/%Y"


class ExportKind(str, Enum):
    """Output shapes the formatter can produce."""

    WORKBOOK = "xlsx"
    DELIMITED_TEXT = "csv"
    PAYROLL_FLAT_FILE = "xero"


class UnsupportedExportKindError(ValueError):
    """Raised when an export kind outside ExportKind is requested."""

    def __init__(self, kind: Any):
        self.kind = kind
        supported = ", ".join(k.value for k in ExportKind)
        super().__init__(f"Unsupported export kind {kind!r} (expected one of: {supported})")


@dataclass(frozen=True)
class ExportResult:
    """Formatted export handed back to the caller."""

    content: bytes
    kind: ExportKind
    filename: str
    media_type: str


class PayrollExportFormatter:
    """Writes aggregated views as an xlsx workbook, a CSV table or a
    payroll-importer CSV.

    Empty aggregates produce header-only output for every kind.
    """

    DETAIL_WIDTHS = (20, 25, 18, 12, 12, 12, 18, 12, 12, 18, 14, 14, 10, 30)
    # indexes of numeric columns in the detail table
    DETAIL_NUMERIC = frozenset({6, 7, 8, 10, 11})

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._writers: dict[ExportKind, Callable[[AggregatedExport], bytes]] = {
            ExportKind.WORKBOOK: self.to_workbook,
            ExportKind.DELIMITED_TEXT: self.to_delimited_text,
            ExportKind.PAYROLL_FLAT_FILE: self.to_payroll_flat_file,
        }

    @staticmethod
    def coerce_kind(kind: ExportKind | str) -> ExportKind:
        if isinstance(kind, ExportKind):
            return kind
        try:
            return ExportKind(kind)
        except ValueError:
            raise UnsupportedExportKindError(kind) from None

    def format(self, aggregated: AggregatedExport, kind: ExportKind | str) -> bytes:
        """Serialize the aggregated views as ``kind``."""
        writer = self._writers.get(self.coerce_kind(kind))
        if writer is None:
            raise UnsupportedExportKindError(kind)
        return writer(aggregated)

    @staticmethod
    def filename_for(kind: ExportKind, start_date: date, end_date: date) -> str:
        span = f"{start_date.isoformat()}_to_{end_date.isoformat()}"
        if kind == ExportKind.PAYROLL_FLAT_FILE:
            return f"xero_timesheet_{span}.csv"
        if kind == ExportKind.DELIMITED_TEXT:
            return f"timesheet_{span}.csv"
        return f"timesheet_{span}.xlsx"

    @staticmethod
    def media_type_for(kind: ExportKind) -> str:
        return XLSX_MEDIA_TYPE if kind == ExportKind.WORKBOOK else CSV_MEDIA_TYPE

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def detail_headers(self) -> list[str]:
        symbol = self.settings.currency_symbol
        return [
            "Employee Name",
            "Employee Email",
            "Location",
            "Date",
            "Clock In",
            "Clock Out",
            "Break Duration (min)",
            "Gross Hours",
            "Net Hours",
            "Shift Category",
            f"Hourly Rate ({symbol})",
            f"Total Pay ({symbol})",
            "Status",
            "Notes",
        ]

    def summary_headers(self) -> list[str]:
        return ["Employee Name", "Total Net Hours", f"Total Pay ({self.settings.currency_symbol})"]

    @staticmethod
    def pivot_headers(pivot: PivotTable) -> list[str]:
        return ["Employee Name", *pivot.columns]

    # ------------------------------------------------------------------
    # Delimited text
    # ------------------------------------------------------------------

    def to_delimited_text(self, aggregated: AggregatedExport) -> bytes:
        """Detail table as delimiter-separated text."""
        rows = (
            [self._text(value) for value in row.values()]
            for row in aggregated.detail
        )
        return self._csv(self.detail_headers(), rows, delimiter=self.settings.csv_delimiter)

    def to_payroll_flat_file(self, aggregated: AggregatedExport) -> bytes:
        """One row per (employee, date, category) for the payroll importer."""
        rows = (
            [
                bucket.employee_name,
                bucket.employee_email,
                bucket.pay_period,
                bucket.work_date.strftime(PAYROLL_DATE_FORMAT),
                bucket.category_name,
                Rounding.format_2dp(bucket.net_hours),
                Rounding.format_2dp(bucket.rate),
                Rounding.format_2dp(bucket.amount),
            ]
            for bucket in aggregated.payroll
        )
        return self._csv(list(PAYROLL_COLUMNS), rows, delimiter=",")

    @staticmethod
    def _text(value: Any) -> str:
        if isinstance(value, Decimal):
            return Rounding.format_2dp(value)
        return str(value)

    @staticmethod
    def _csv(headers: list[str], rows: Iterable[list[str]], delimiter: str) -> bytes:
        output = io.StringIO()
        writer = csv.writer(output, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(headers)
        writer.writerows(rows)
        return output.getvalue().encode("utf-8")

    # ------------------------------------------------------------------
    # Workbook
    # ------------------------------------------------------------------

    def to_workbook(self, aggregated: AggregatedExport) -> bytes:
        """Detail, Summary and Pivot sheets in one xlsx workbook."""
        wb = Workbook()

        detail = wb.active
        detail.title = "Detail"
        self._write_sheet(
            detail,
            self.detail_headers(),
            (row.values() for row in aggregated.detail),
            numeric=self.DETAIL_NUMERIC,
            widths=self.DETAIL_WIDTHS,
        )

        summary = wb.create_sheet("Summary")
        self._write_sheet(
            summary,
            self.summary_headers(),
            (
                (
                    row.employee_name,
                    Rounding.round_to_cents(row.total_net_hours),
                    Rounding.round_to_cents(row.total_pay),
                )
                for row in aggregated.summary
            ),
            numeric=frozenset({1, 2}),
            widths=(20, 15, 15),
        )

        pivot = aggregated.pivot
        pivot_sheet = wb.create_sheet("Pivot")
        # no TOTAL row without employees, so empty exports stay header-only
        pivot_rows = [
            (row.label, *(self._pivot_cell(c) for c in row.cells), self._pivot_cell(row.total))
            for row in ((*pivot.rows, pivot.totals) if pivot.rows else ())
        ]
        self._write_sheet(
            pivot_sheet,
            self.pivot_headers(pivot),
            pivot_rows,
            numeric=frozenset(range(1, len(pivot.columns) + 1)),
            widths=(20, *([14] * len(pivot.columns))),
        )
        if pivot_rows:
            for cell in pivot_sheet[pivot_sheet.max_row]:
                cell.font = Font(bold=True)

        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    @staticmethod
    def _pivot_cell(value: Decimal) -> Decimal | None:
        """Zero sums render blank."""
        if value == 0:
            return None
        return Rounding.round_to_cents(value)

    @staticmethod
    def _write_sheet(
        ws: Worksheet,
        headers: Sequence[str],
        rows: Iterable[Sequence[Any]],
        numeric: frozenset[int],
        widths: Sequence[int],
    ) -> None:
        header_font = Font(bold=True)
        right = Alignment(horizontal="right")

        ws.append(list(headers))
        for cell in ws[1]:
            cell.font = header_font

        for row in rows:
            ws.append(list(row))
            for index in numeric:
                cell = ws.cell(row=ws.max_row, column=index + 1)
                cell.alignment = right
                if isinstance(cell.value, Decimal):
                    cell.number_format = "0.00"

        for index, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(index)].width = width
