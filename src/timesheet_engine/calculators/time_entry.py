"""Per-entry hours and pay calculation."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from timesheet_engine.calculators.pay_periods import PayPeriodResolver
from timesheet_engine.calculators.rate_resolver import UNCATEGORIZED
from timesheet_engine.calculators.rounding import ZERO, Rounding
from timesheet_engine.calculators.types import CalculatedEntry, RawTimeEntry

UNASSIGNED_LOCATION = "Unassigned"


def local_date(moment: datetime, tz: ZoneInfo | None = None) -> date:
    """Calendar date of a timestamp in the organization's timezone.

    Naive timestamps are taken to already be local.
    """
    if moment.tzinfo is not None and tz is not None:
        return moment.astimezone(tz).date()
    return moment.date()


class TimeEntryCalculator:
    """Computes gross hours, net hours and pay for completed entries.

    - gross = clock_out - clock_in, in hours
    - net = max(0, gross - break_minutes / 60)
    - pay = net * rate, left unrounded
    """

    def __init__(
        self,
        pay_periods: PayPeriodResolver | None = None,
        tz: ZoneInfo | None = None,
    ):
        self.pay_periods = pay_periods or PayPeriodResolver()
        self.tz = tz

    def work_date(self, entry: RawTimeEntry) -> date:
        """Day an entry belongs to; overnight shifts stay on their start date."""
        return local_date(entry.clock_in, self.tz)

    @staticmethod
    def gross_hours(entry: RawTimeEntry) -> Decimal:
        if entry.clock_out is None:
            raise ValueError(f"Time entry {entry.entry_id} has no clock-out")
        return Rounding.hours_from_timedelta(entry.clock_out - entry.clock_in)

    @staticmethod
    def net_hours(gross_hours: Decimal, break_minutes: int) -> Decimal:
        return max(ZERO, gross_hours - Rounding.hours_from_minutes(break_minutes))

    def calculate(
        self,
        entry: RawTimeEntry,
        effective_rate: Decimal,
        break_minutes: int,
    ) -> CalculatedEntry:
        """Calculate one completed entry.

        Open entries must be filtered out before they get here.
        """
        gross = self.gross_hours(entry)
        net = self.net_hours(gross, break_minutes)
        work_date = self.work_date(entry)

        return CalculatedEntry(
            entry_id=entry.entry_id,
            employee_id=entry.employee_id,
            employee_name=entry.employee_name,
            employee_email=entry.employee_email,
            work_date=work_date,
            clock_in=entry.clock_in,
            clock_out=entry.clock_out,
            recorded_break_minutes=entry.total_break_minutes,
            break_minutes=break_minutes,
            gross_hours=gross,
            net_hours=net,
            category_name=entry.category_name if entry.is_categorized else UNCATEGORIZED,
            effective_rate=effective_rate,
            total_pay=net * effective_rate,
            pay_period=self.pay_periods.label_for(work_date),
            location_name=entry.location_name or UNASSIGNED_LOCATION,
            status=entry.status,
            notes=entry.notes,
        )
