"""Export aggregation and formatting."""

from timesheet_engine.exports.aggregator import AggregatedExport, ExportAggregator
from timesheet_engine.exports.formatter import (
    ExportKind,
    ExportResult,
    PayrollExportFormatter,
    UnsupportedExportKindError,
)

__all__ = [
    "AggregatedExport",
    "ExportAggregator",
    "ExportKind",
    "ExportResult",
    "PayrollExportFormatter",
    "UnsupportedExportKindError",
]
