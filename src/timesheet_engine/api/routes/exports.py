"""Timesheet export API endpoints."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, Response, status

from timesheet_engine.api.dependencies import Engine
from timesheet_engine.api.schemas import (
    ErrorResponse,
    ExportRequestIn,
    PivotRowResponse,
    SummaryResponse,
    SummaryRowResponse,
)
from timesheet_engine.calculators.rounding import Rounding
from timesheet_engine.exports.aggregator import PivotRow
from timesheet_engine.exports.formatter import ExportKind, UnsupportedExportKindError

router = APIRouter(prefix="/exports", tags=["exports"])


def _pivot_value(value: Decimal) -> Decimal | None:
    return None if value == 0 else Rounding.round_to_cents(value)


def _pivot_row(row: PivotRow, categories: tuple[str, ...]) -> PivotRowResponse:
    return PivotRowResponse(
        label=row.label,
        cells={c: _pivot_value(v) for c, v in zip(categories, row.cells)},
        total=_pivot_value(row.total),
    )


@router.post(
    "/timesheet",
    responses={
        200: {"content": {"text/csv": {}, "application/octet-stream": {}}},
        400: {"model": ErrorResponse},
    },
)
def export_timesheet(
    engine: Engine,
    payload: ExportRequestIn,
    kind: Annotated[str, Query(description="xlsx, csv or xero")] = ExportKind.WORKBOOK.value,
) -> Response:
    """Build a timesheet export and return it as a file download."""
    try:
        result = engine.export(payload.to_domain(), kind)
    except UnsupportedExportKindError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.post(
    "/timesheet/summary",
    response_model=SummaryResponse,
    responses={400: {"model": ErrorResponse}},
)
def summarize_timesheet(engine: Engine, payload: ExportRequestIn) -> SummaryResponse:
    """Return the summary and pivot views as JSON."""
    calculation = engine.calculate(payload.to_domain())
    aggregated = engine.aggregator.aggregate(calculation)
    pivot = aggregated.pivot

    return SummaryResponse(
        start_date=calculation.start_date,
        end_date=calculation.end_date,
        mode=calculation.mode,
        entry_count=len(calculation.entries),
        summary=[
            SummaryRowResponse(
                employee_id=row.employee_id,
                employee_name=row.employee_name,
                total_net_hours=Rounding.round_to_cents(row.total_net_hours),
                total_pay=Rounding.round_to_cents(row.total_pay),
            )
            for row in aggregated.summary
        ],
        categories=list(pivot.categories),
        pivot=[_pivot_row(row, pivot.categories) for row in pivot.rows],
        totals=_pivot_row(pivot.totals, pivot.categories),
    )
