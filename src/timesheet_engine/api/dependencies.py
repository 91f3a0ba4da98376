"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from timesheet_engine.calculators.engine import TimesheetEngine
from timesheet_engine.config import Settings, get_settings


def get_engine(settings: Annotated[Settings, Depends(get_settings)]) -> TimesheetEngine:
    """Get a timesheet engine bound to the current settings."""
    return TimesheetEngine(settings)


# Type aliases for cleaner dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
Engine = Annotated[TimesheetEngine, Depends(get_engine)]
