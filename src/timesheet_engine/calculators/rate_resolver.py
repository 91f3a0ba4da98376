"""Hourly rate resolution with per-employee overrides."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from timesheet_engine.calculators.types import RateOverride

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"


class RateResolver:
    """Resolves the effective hourly rate for an employee and category.

    Rate selection priority:
    1. Employee override for (employee, category), if one exists
    2. The category's default rate
    3. Zero, when the entry has no category or the category has no rate

    A zero rate is a valid billing state: the entry stays visible in the
    export as "Uncategorized" so it can be corrected by hand.
    """

    def __init__(self, overrides: Iterable[RateOverride] = ()):
        self._overrides: dict[tuple[str, str], Decimal] = {}
        for override in overrides:
            key = (override.employee_id, override.category_id)
            if key in self._overrides:
                logger.debug(
                    "Duplicate rate override for employee %s category %s, keeping last",
                    *key,
                )
            self._overrides[key] = override.hourly_rate

    def resolve(
        self,
        employee_id: str,
        category_id: str | None,
        category_default_rate: Decimal | None,
    ) -> Decimal:
        """Return the effective hourly rate."""
        if category_id is None:
            return Decimal("0")

        override = self._overrides.get((employee_id, category_id))
        if override is not None:
            return override

        if category_default_rate is None:
            return Decimal("0")
        return category_default_rate

    def has_override(self, employee_id: str, category_id: str | None) -> bool:
        if category_id is None:
            return False
        return (employee_id, category_id) in self._overrides
