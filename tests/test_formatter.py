"""Tests for workbook and CSV export formatting."""

import csv
import io
from dataclasses import replace
from datetime import date

import pytest
from hypothesis import given, strategies as st
from openpyxl import load_workbook

from timesheet_engine.calculators.types import BreakCalculationMode, TimesheetCalculation
from timesheet_engine.exports.aggregator import ExportAggregator
from timesheet_engine.exports.formatter import (
    CSV_MEDIA_TYPE,
    PAYROLL_COLUMNS,
    XLSX_MEDIA_TYPE,
    ExportKind,
    PayrollExportFormatter,
    UnsupportedExportKindError,
)
from tests.conftest import ALEX_DAY
from tests.test_aggregator import calculated


@pytest.fixture
def alex_aggregate(engine, alex_request):
    return engine.aggregator.aggregate(engine.calculate(alex_request))


@pytest.fixture
def empty_aggregate(settings):
    calculation = TimesheetCalculation(
        entries=(),
        day_deductions=(),
        mode=BreakCalculationMode.PER_SHIFT,
        start_date=ALEX_DAY,
        end_date=ALEX_DAY,
    )
    return ExportAggregator(settings).aggregate(calculation)


def read_csv(content: bytes, delimiter: str = ",") -> list[list[str]]:
    return list(csv.reader(io.StringIO(content.decode("utf-8")), delimiter=delimiter))


class TestPayrollFlatFile:
    """Payroll importer CSV."""

    def test_alex_rows(self, settings, alex_aggregate):
        content = PayrollExportFormatter(settings).to_payroll_flat_file(alex_aggregate)
        lines = content.decode("utf-8").splitlines()

        assert lines == [
            ",".join(PAYROLL_COLUMNS),
            "Alex,alex@example.com,January 2024,15/01/2024,Bar,3.75,12.00,45.00",
            "Alex,alex@example.com,January 2024,15/01/2024,Coaching,3.75,20.00,75.00",
        ]

    def test_comma_even_with_other_delimiter(self, settings, alex_aggregate):
        settings = replace(settings, csv_delimiter=";", date_format="%Y-%m-%d")
        content = PayrollExportFormatter(settings).to_payroll_flat_file(alex_aggregate)

        rows = read_csv(content)
        assert rows[1][3] == "15/01/2024"
        assert len(rows[1]) == len(PAYROLL_COLUMNS)


class TestDelimitedText:
    """Detail table as CSV."""

    def test_headers_and_alex_row(self, settings, alex_aggregate):
        rows = read_csv(PayrollExportFormatter(settings).to_delimited_text(alex_aggregate))

        assert rows[0][10] == "Hourly Rate (£)"
        assert rows[0][11] == "Total Pay (£)"
        assert rows[1] == [
            "Alex",
            "alex@example.com",
            "Unassigned",
            "15/01/2024",
            "08:00:00",
            "12:00:00",
            "15",
            "4.00",
            "3.75",
            "Bar",
            "12.00",
            "45.00",
            "",
            "",
        ]

    @given(
        st.text(
            alphabet=st.sampled_from(list('abcXYZ ,;"\'\n-é')),
            min_size=1,
            max_size=30,
        )
    )
    def test_notes_survive_quoting(self, notes):
        """Test any notes text reads back unchanged."""
        aggregator = ExportAggregator()
        calculation = TimesheetCalculation(
            entries=(replace(calculated("Alex", "Bar", "1"), notes=notes),),
            day_deductions=(),
            mode=BreakCalculationMode.PER_SHIFT,
            start_date=ALEX_DAY,
            end_date=ALEX_DAY,
        )

        content = PayrollExportFormatter().to_delimited_text(aggregator.aggregate(calculation))

        assert read_csv(content)[1][-1] == notes

    def test_configured_delimiter(self, settings, alex_aggregate):
        settings = replace(settings, csv_delimiter=";")
        content = PayrollExportFormatter(settings).to_delimited_text(alex_aggregate)

        rows = read_csv(content, delimiter=";")
        assert rows[0][0] == "Employee Name"
        assert rows[1][9] == "Bar"


class TestWorkbook:
    """Three-sheet xlsx workbook."""

    def test_sheets_and_values(self, settings, alex_aggregate):
        content = PayrollExportFormatter(settings).to_workbook(alex_aggregate)
        wb = load_workbook(io.BytesIO(content))

        assert wb.sheetnames == ["Detail", "Summary", "Pivot"]

        detail = list(wb["Detail"].iter_rows(values_only=True))
        assert detail[0][0] == "Employee Name"
        assert len(detail) == 3
        assert detail[1][8] == 3.75
        assert detail[1][11] == 45

        summary = list(wb["Summary"].iter_rows(values_only=True))
        assert summary[0] == ("Employee Name", "Total Net Hours", "Total Pay (£)")
        assert summary[1] == ("Alex", 7.5, 120)

        pivot = list(wb["Pivot"].iter_rows(values_only=True))
        assert pivot[0] == ("Employee Name", "Bar", "Coaching", "Total")
        assert pivot[1] == ("Alex", 3.75, 3.75, 7.5)
        assert pivot[2] == ("TOTAL", 3.75, 3.75, 7.5)

    def test_headers_bold_and_numbers_formatted(self, settings, alex_aggregate):
        content = PayrollExportFormatter(settings).to_workbook(alex_aggregate)
        ws = load_workbook(io.BytesIO(content))["Detail"]

        assert ws["A1"].font.bold
        assert ws["I2"].number_format == "0.00"
        assert ws["I2"].alignment.horizontal == "right"

    def test_pivot_zero_cells_blank(self, settings):
        aggregator = ExportAggregator(settings)
        calculation = TimesheetCalculation(
            entries=(calculated("Alex", "Bar", "2"), calculated("Bea", "Coaching", "4")),
            day_deductions=(),
            mode=BreakCalculationMode.PER_SHIFT,
            start_date=ALEX_DAY,
            end_date=ALEX_DAY,
        )

        content = PayrollExportFormatter(settings).to_workbook(aggregator.aggregate(calculation))
        pivot = list(load_workbook(io.BytesIO(content))["Pivot"].iter_rows(values_only=True))

        assert pivot[1] == ("Alex", 2, None, 2)
        assert pivot[2] == ("Bea", None, 4, 4)
        assert pivot[3] == ("TOTAL", 2, 4, 6)


class TestEmptyExport:
    """Header-only output for every kind."""

    def test_workbook_headers_only(self, settings, empty_aggregate):
        content = PayrollExportFormatter(settings).format(empty_aggregate, ExportKind.WORKBOOK)
        wb = load_workbook(io.BytesIO(content))

        for name in ("Detail", "Summary", "Pivot"):
            assert wb[name].max_row == 1
        assert next(wb["Pivot"].iter_rows(values_only=True)) == ("Employee Name", "Total")

    @pytest.mark.parametrize("kind", ["csv", "xero"])
    def test_csv_headers_only(self, settings, empty_aggregate, kind):
        rows = read_csv(PayrollExportFormatter(settings).format(empty_aggregate, kind))

        assert len(rows) == 1


class TestKinds:
    """Export kind handling."""

    def test_unsupported_kind(self, settings, alex_aggregate):
        with pytest.raises(UnsupportedExportKindError) as exc_info:
            PayrollExportFormatter(settings).format(alex_aggregate, "pdf")

        assert exc_info.value.kind == "pdf"

    @pytest.mark.parametrize(
        "kind,filename,media_type",
        [
            (ExportKind.WORKBOOK, "timesheet_2024-01-15_to_2024-01-21.xlsx", XLSX_MEDIA_TYPE),
            (ExportKind.DELIMITED_TEXT, "timesheet_2024-01-15_to_2024-01-21.csv", CSV_MEDIA_TYPE),
            (ExportKind.PAYROLL_FLAT_FILE, "xero_timesheet_2024-01-15_to_2024-01-21.csv", CSV_MEDIA_TYPE),
        ],
    )
    def test_filenames_and_media_types(self, kind, filename, media_type):
        start, end = date(2024, 1, 15), date(2024, 1, 21)

        assert PayrollExportFormatter.filename_for(kind, start, end) == filename
        assert PayrollExportFormatter.media_type_for(kind) == media_type
