"""
Export endpoint.

Returns the report for a screen as a file download, or
204 No Content when the screen has nothing to export.
"""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from expense_ledger.api.dependencies import (
    authorize,
    get_currency,
    get_store,
    selected_day,
)
from expense_ledger.api.views import history_range
from expense_ledger.reports.model import ReportScreen
from expense_ledger.services.currency_service import CurrencyService
from expense_ledger.services.export_service import ExportService, ExportType
from expense_ledger.store.ledger_store import LedgerStore

router = APIRouter(
    prefix="/api",
    tags=["Export"],
    dependencies=[Depends(authorize)],
)


def _choice(enum_type, value: str, field: str):
    try:
        return enum_type(value.lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise HTTPException(
            status_code=400,
            detail=f"{field}: expected one of {allowed}, got '{value}'",
        )


@router.get("/export")
def export_report(
    type: str = Query(default="csv"),
    screen: str = Query(default="daily"),
    day: dt.date = Depends(selected_day),
    bounds: tuple[dt.date, dt.date] = Depends(history_range),
    store: LedgerStore = Depends(get_store),
    currency: CurrencyService = Depends(get_currency),
):
    export_type = _choice(ExportType, type, "type")
    report_screen = _choice(ReportScreen, screen, "screen")

    start, end = bounds
    artifact = ExportService(store).export(
        export_type,
        report_screen,
        currency.refresh(),
        day,
        start,
        end,
    )
    if artifact is None:
        return Response(status_code=204)

    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.filename}"'
        },
    )
