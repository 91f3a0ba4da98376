"""Break rule resolution across organization and location scopes."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from timesheet_engine.calculators.types import (
    BreakCalculationMode,
    BreakPolicy,
    BreakResolution,
    BreakRule,
    BreakRuleSet,
)

logger = logging.getLogger(__name__)


class StoredBreakRule(BaseModel):
    """Break rule as stored by the settings screens (camelCase JSON)."""

    model_config = ConfigDict(populate_by_name=True)

    min_hours: Decimal = Field(alias="minHours", ge=0)
    break_minutes: int = Field(alias="breakMinutes", ge=0)


_stored_rules = TypeAdapter(list[StoredBreakRule])


def parse_break_rules(raw: Any) -> BreakRuleSet:
    """Deserialize a stored rule list into a typed rule set.

    Accepts the JSON text kept by the store or an already-decoded list.
    Anything malformed yields an empty rule set so that the export still
    runs (zero breaks) instead of failing.
    """
    if raw is None:
        return BreakRuleSet()

    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        stored = _stored_rules.validate_python(data)
    except (ValueError, ValidationError) as e:
        logger.warning("Ignoring malformed break rules %r: %s", raw, e)
        return BreakRuleSet()

    return BreakRuleSet.from_rules(
        BreakRule(min_hours=r.min_hours, break_minutes=r.break_minutes)
        for r in stored
    )


class BreakResolver:
    """Resolves unpaid break minutes from threshold rules.

    Scope chain (two levels, no merging):
    1. Location rule set, when the location has a non-empty override
    2. Organization rule set otherwise

    The calculation mode always comes from the organization.
    """

    @staticmethod
    def effective_rules(
        policy: BreakPolicy,
        location_id: str | None = None,
    ) -> tuple[BreakRuleSet, BreakCalculationMode]:
        """Pick the rule set and mode that apply at a location."""
        if location_id is not None:
            location_rules = policy.location_rules.get(location_id)
            if location_rules is not None and not location_rules.is_empty:
                return location_rules, policy.mode
        return policy.rules, policy.mode

    @staticmethod
    def has_override(policy: BreakPolicy, location_id: str | None) -> bool:
        """Whether a location replaces the organization's rules."""
        if location_id is None:
            return False
        location_rules = policy.location_rules.get(location_id)
        return location_rules is not None and not location_rules.is_empty

    @staticmethod
    def lookup(rules: BreakRuleSet, hours: Decimal) -> int:
        """Break minutes for a duration.

        Selects the rule with the largest ``min_hours`` not above ``hours``.
        Durations below every threshold get no break.
        """
        selected: BreakRule | None = None
        for rule in rules.rules:
            if rule.min_hours <= hours:
                selected = rule
            else:
                break
        return selected.break_minutes if selected is not None else 0

    @staticmethod
    def resolve(
        rules: BreakRuleSet,
        mode: BreakCalculationMode,
        shift_hours: Mapping[str, Decimal],
    ) -> BreakResolution:
        """Resolve breaks for one employee's shifts on one day.

        PER_SHIFT looks up each shift on its own duration. PER_DAY looks up
        the summed duration once and returns a single daily deduction.
        """
        if mode == BreakCalculationMode.PER_DAY:
            total = sum(shift_hours.values(), Decimal("0"))
            return BreakResolution(
                mode=mode,
                daily_minutes=BreakResolver.lookup(rules, total),
            )

        return BreakResolution(
            mode=mode,
            per_shift={
                shift_id: BreakResolver.lookup(rules, hours)
                for shift_id, hours in shift_hours.items()
            },
        )
