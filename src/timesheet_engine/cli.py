"""Timesheet export command line interface.

Usage:
    timesheet-engine export --input request.json --kind xlsx
    timesheet-engine export --input request.json --kind xero --output payroll.csv
    timesheet-engine summary --input request.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from timesheet_engine.api.schemas import ExportRequestIn
from timesheet_engine.calculators.engine import TimesheetEngine
from timesheet_engine.calculators.rounding import Rounding
from timesheet_engine.config import configure_logging, get_settings
from timesheet_engine.exports.formatter import ExportKind, UnsupportedExportKindError

logger = logging.getLogger(__name__)


class TimesheetCli:
    """Timesheet Command Line Interface."""

    def __init__(self, engine: TimesheetEngine | None = None) -> None:
        self.engine = engine
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="timesheet-engine",
            description="Timesheet hours, pay and payroll export tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # export command
        export = subparsers.add_parser(
            "export",
            help="Write a timesheet export file",
        )
        export.add_argument(
            "--input",
            type=Path,
            required=True,
            help="JSON export request (use - for stdin)",
        )
        export.add_argument(
            "--kind",
            type=str,
            default=ExportKind.WORKBOOK.value,
            help="Output kind: xlsx, csv or xero (default: xlsx)",
        )
        export.add_argument(
            "--output",
            type=Path,
            help="Output path (default: suggested filename in the current directory)",
        )

        # summary command
        summary = subparsers.add_parser(
            "summary",
            help="Print per-employee totals",
        )
        summary.add_argument(
            "--input",
            type=Path,
            required=True,
            help="JSON export request (use - for stdin)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run CLI with arguments."""
        parsed = self.parser.parse_args(args)

        if parsed.command is None:
            self.parser.print_help()
            return 1

        if self.engine is None:
            settings = get_settings()
            configure_logging(settings)
            self.engine = TimesheetEngine(settings)

        handlers = {
            "export": self._cmd_export,
            "summary": self._cmd_summary,
        }
        return handlers[parsed.command](parsed)

    def _load_request(self, path: Path) -> ExportRequestIn | None:
        try:
            raw = sys.stdin.read() if str(path) == "-" else path.read_text(encoding="utf-8")
            return ExportRequestIn.model_validate(json.loads(raw))
        except OSError as e:
            print(f"ERROR: cannot read {path}: {e}", file=sys.stderr)
        except json.JSONDecodeError as e:
            print(f"ERROR: {path} is not valid JSON: {e}", file=sys.stderr)
        except ValidationError as e:
            print(f"ERROR: invalid export request:\n{e}", file=sys.stderr)
        return None

    def _cmd_export(self, args: argparse.Namespace) -> int:
        """Write an export file."""
        payload = self._load_request(args.input)
        if payload is None:
            return 1

        try:
            result = self.engine.export(payload.to_domain(), args.kind)
        except UnsupportedExportKindError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2

        output = args.output or Path(result.filename)
        output.write_bytes(result.content)
        print(f"Wrote {len(result.content)} bytes to {output}")
        return 0

    def _cmd_summary(self, args: argparse.Namespace) -> int:
        """Print per-employee totals."""
        payload = self._load_request(args.input)
        if payload is None:
            return 1

        calculation = self.engine.calculate(payload.to_domain())
        aggregated = self.engine.aggregator.aggregate(calculation)
        symbol = self.engine.settings.currency_symbol

        print(f"Timesheet {calculation.start_date} to {calculation.end_date} ({calculation.mode.value})")
        print("=" * 60)
        for row in aggregated.summary:
            print(
                f"{row.employee_name:<30} "
                f"{Rounding.format_2dp(row.total_net_hours):>10} h "
                f"{symbol}{Rounding.format_2dp(row.total_pay):>12}"
            )
        print("-" * 60)
        print(f"{'TOTAL':<30} {Rounding.format_2dp(aggregated.pivot.grand_total):>10} h")
        return 0


def main() -> int:
    """CLI entry point."""
    cli = TimesheetCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
