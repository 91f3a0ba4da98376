"""Decimal precision helpers shared by the calculators and exports."""

from __future__ import annotations

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
SECONDS_PER_HOUR = Decimal("3600")
MINUTES_PER_HOUR = Decimal("60")


class Rounding:
    """Rounding conventions for hours and money.

    - Hours derived from clock times and break minutes keep the full
      Decimal context precision; they are never quantized per entry
    - Only day-deduction shares are quantized to 6 decimal places, with the
      remainder assigned so that the shares still add up exactly
    - Money and hours are rounded to 2 decimals only for presentation
    - Aggregation always works on the unrounded values
    """

    INTERNAL_PRECISION = Decimal("0.000001")
    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def internal(value: Decimal) -> Decimal:
        """Quantize a value to internal precision."""
        return value.quantize(Rounding.INTERNAL_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (presentation only)."""
        return amount.quantize(Rounding.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def hours_from_timedelta(elapsed: timedelta) -> Decimal:
        """Convert an elapsed duration to hours (unrounded)."""
        seconds = Decimal(elapsed.days * 86400 + elapsed.seconds) + (
            Decimal(elapsed.microseconds) / Decimal(1_000_000)
        )
        return seconds / SECONDS_PER_HOUR

    @staticmethod
    def hours_from_minutes(minutes: int | Decimal) -> Decimal:
        """Convert minutes to hours (unrounded)."""
        return Decimal(minutes) / MINUTES_PER_HOUR

    @staticmethod
    def format_2dp(value: Decimal) -> str:
        """Render a value with exactly two decimals."""
        return f"{Rounding.round_to_cents(value):.2f}"
