"""Pay period label resolution."""

from __future__ import annotations

import calendar
import logging
from datetime import date
from typing import Iterable

from timesheet_engine.calculators.types import PayPeriod

logger = logging.getLogger(__name__)


def fallback_label(day: date) -> str:
    """Label for a date outside every configured period, e.g. 'January 2024'."""
    return f"{calendar.month_name[day.month]} {day.year}"


def find_overlaps(periods: Iterable[PayPeriod]) -> list[tuple[PayPeriod, PayPeriod]]:
    """Return every pair of periods whose date ranges intersect."""
    ordered = list(periods)
    overlaps: list[tuple[PayPeriod, PayPeriod]] = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            if first.start_date <= second.end_date and second.start_date <= first.end_date:
                overlaps.append((first, second))
    return overlaps


class PayPeriodResolver:
    """Maps dates to pay period labels.

    Periods are scanned in the order the caller supplies them and the first
    period containing the date wins. Overlapping periods are not rejected,
    so that order decides the label; overlaps are logged when the resolver
    is built.
    """

    def __init__(self, periods: Iterable[PayPeriod] = ()):
        self.periods: tuple[PayPeriod, ...] = tuple(periods)
        for first, second in find_overlaps(self.periods):
            logger.warning(
                "Pay periods '%s' and '%s' overlap; '%s' takes precedence",
                first.name,
                second.name,
                first.name,
            )

    def find(self, day: date) -> PayPeriod | None:
        for period in self.periods:
            if period.contains(day):
                return period
        return None

    def label_for(self, day: date) -> str:
        period = self.find(day)
        if period is None:
            return fallback_label(day)
        return period.name
