"""Pytest fixtures for timesheet engine tests."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

import pytest

from timesheet_engine.calculators.engine import TimesheetEngine
from timesheet_engine.calculators.types import (
    BreakCalculationMode,
    BreakPolicy,
    BreakRule,
    BreakRuleSet,
    ExportRequest,
    RawTimeEntry,
)
from timesheet_engine.config import Settings

ALEX_DAY = date(2024, 1, 15)


@pytest.fixture
def settings() -> Settings:
    """Deterministic settings, independent of the environment."""
    return Settings(
        engine_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
        timezone="Europe/London",
        currency_symbol="£",
        csv_delimiter=",",
        date_format="%d/%m/%Y",
        time_format="%H:%M:%S",
    )


@pytest.fixture
def engine(settings: Settings) -> TimesheetEngine:
    return TimesheetEngine(settings)


@pytest.fixture
def make_entry() -> Callable[..., RawTimeEntry]:
    """Factory for completed time entries on a given day."""
    counter = {"n": 0}

    def _make(
        start: str,
        end: str | None,
        *,
        day: date = ALEX_DAY,
        end_day: date | None = None,
        employee_id: str = "emp-alex",
        employee_name: str = "Alex",
        break_minutes: int = 0,
        category_id: str | None = "cat-bar",
        category_name: str | None = "Bar",
        rate: str | None = "12.00",
        **extra: Any,
    ) -> RawTimeEntry:
        counter["n"] += 1
        clock_in = datetime.combine(day, datetime.strptime(start, "%H:%M").time())
        clock_out = None
        if end is not None:
            clock_out = datetime.combine(end_day or day, datetime.strptime(end, "%H:%M").time())
        return RawTimeEntry(
            entry_id=f"entry-{counter['n']}",
            employee_id=employee_id,
            employee_name=employee_name,
            employee_email=f"{employee_name.lower()}@example.com",
            clock_in=clock_in,
            clock_out=clock_out,
            total_break_minutes=break_minutes,
            category_id=category_id,
            category_name=category_name,
            category_rate=Decimal(rate) if rate is not None else None,
            **extra,
        )

    return _make


def rules(*pairs: tuple[str | int, int]) -> BreakRuleSet:
    """Build a rule set from (min_hours, break_minutes) pairs."""
    return BreakRuleSet.from_rules(BreakRule(Decimal(str(h)), m) for h, m in pairs)


@pytest.fixture
def alex_request(make_entry) -> ExportRequest:
    """Two completed entries for Alex on 2024-01-15 in different categories."""
    return ExportRequest(
        entries=(
            make_entry("08:00", "12:00", break_minutes=15),
            make_entry(
                "13:00",
                "17:00",
                break_minutes=15,
                category_id="cat-coaching",
                category_name="Coaching",
                rate="20.00",
            ),
        ),
        start_date=ALEX_DAY,
        end_date=ALEX_DAY,
        break_policy=BreakPolicy(
            rules=rules((4, 15)),
            mode=BreakCalculationMode.PER_SHIFT,
        ),
    )


@pytest.fixture
def alex_payload() -> dict[str, Any]:
    """The Alex scenario as an API/CLI JSON payload."""
    return {
        "start_date": "2024-01-15",
        "end_date": "2024-01-15",
        "organization": {
            "break_rules": '[{"minHours": 4, "breakMinutes": 15}]',
            "break_calculation_mode": "PER_SHIFT",
        },
        "entries": [
            {
                "id": "e1",
                "employee_id": "emp-alex",
                "employee_name": "Alex",
                "employee_email": "alex@example.com",
                "clock_in": "2024-01-15T08:00:00",
                "clock_out": "2024-01-15T12:00:00",
                "total_break_minutes": 15,
                "category_id": "cat-bar",
                "category_name": "Bar",
                "category_rate": "12.00",
            },
            {
                "id": "e2",
                "employee_id": "emp-alex",
                "employee_name": "Alex",
                "employee_email": "alex@example.com",
                "clock_in": "2024-01-15T13:00:00",
                "clock_out": "2024-01-15T17:00:00",
                "total_break_minutes": 15,
                "category_id": "cat-coaching",
                "category_name": "Coaching",
                "category_rate": "20.00",
            },
        ],
    }
