"""
Computed views: day summary, history feed, and lookups.

Balances in these responses are derived from the stored
entries on every request.
"""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException, Query

from expense_ledger.api.dependencies import (
    authorize,
    get_app_settings,
    get_store,
    parse_day,
    selected_day,
)
from expense_ledger.config import Settings
from expense_ledger.schemas.ledger import (
    BalancesResponse,
    BulkDeleteResponse,
    DayViewResponse,
    DirectionTotalsResponse,
    EntryResponse,
    ExpenseHistoryResponse,
    HistoryResponse,
    SourceBalanceResponse,
    TransferHistoryResponse,
    TransferResponse,
)
from expense_ledger.services.history import ExpenseItem
from expense_ledger.services.ledger_service import (
    DayView,
    LedgerService,
    month_bounds,
)
from expense_ledger.store.ledger_store import LedgerStore

router = APIRouter(
    prefix="/api",
    tags=["Views"],
    dependencies=[Depends(authorize)],
)


def _balances(balances) -> BalancesResponse:
    return BalancesResponse(
        cash=balances.cash,
        cheque=balances.cheque,
        card=balances.card,
        total=balances.total,
    )


def day_view_response(view: DayView) -> DayViewResponse:
    totals = view.transfer_totals
    return DayViewResponse(
        date=view.date,
        sources=[
            SourceBalanceResponse(
                source_name=s.source_name,
                has_snapshot=s.has_snapshot,
                opening=_balances(s.opening),
                closing=_balances(s.closing),
            )
            for s in view.sources
        ],
        grand_total=_balances(view.grand_total),
        transfers=DirectionTotalsResponse(
            credit=totals.credit, debit=totals.debit, net=totals.net
        ),
        entry_count=len(view.entries),
        transfer_count=len(view.transfers),
    )


def history_range(
    day: dt.date = Depends(selected_day),
    start: str | None = Query(default=None),
    end: str | None = Query(default=None),
    settings: Settings = Depends(get_app_settings),
) -> tuple[dt.date, dt.date]:
    """
    ?start= and ?end= bounds, each defaulting to the edges of the
    month that contains ?date=.

    Ranges longer than MAX_RANGE_DAYS are rejected; every day in
    a range is read (and locked) on its own.
    """
    month_start, month_end = month_bounds(day)
    first = parse_day(start, "start") or month_start
    last = parse_day(end, "end") or month_end
    if first > last:
        raise HTTPException(
            status_code=400,
            detail=f"start {first} is after end {last}",
        )
    span = (last - first).days + 1
    if span > settings.MAX_RANGE_DAYS:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Range {first} to {last} covers {span} days; "
                f"at most {settings.MAX_RANGE_DAYS} allowed"
            ),
        )
    return first, last


@router.get("/summary", response_model=DayViewResponse)
def day_summary(
    day: dt.date = Depends(selected_day),
    store: LedgerStore = Depends(get_store),
):
    """Per-source closing balances, grand total, and transfer totals."""
    return day_view_response(LedgerService(store).day_view(day))


@router.get("/history", response_model=HistoryResponse)
def history(
    bounds: tuple[dt.date, dt.date] = Depends(history_range),
    store: LedgerStore = Depends(get_store),
):
    """Entries and transfers in the range, newest first."""
    start, end = bounds
    items = []
    for item in LedgerService(store).history(start, end):
        if isinstance(item, ExpenseItem):
            items.append(ExpenseHistoryResponse(
                entry=EntryResponse.model_validate(item.entry)
            ))
        else:
            items.append(TransferHistoryResponse(
                transfer=TransferResponse.model_validate(item.transfer)
            ))
    return HistoryResponse(start=start, end=end, items=items)


@router.delete("/history", response_model=BulkDeleteResponse)
def delete_history(
    bounds: tuple[dt.date, dt.date] = Depends(history_range),
    store: LedgerStore = Depends(get_store),
):
    """
    Delete every entry and transfer in the range.

    Records are deleted one by one; a failure part way through
    leaves the earlier deletions in place.
    """
    start, end = bounds
    return BulkDeleteResponse(deleted=LedgerService(store).delete_history(start, end))


@router.get("/categories", response_model=list[str])
def categories(store: LedgerStore = Depends(get_store)):
    return LedgerService(store).categories()


@router.get("/suggestions", response_model=list[str])
def suggestions(
    category: str = Query(...),
    q: str = Query(default=""),
    store: LedgerStore = Depends(get_store),
):
    """Item labels used before in a category that contain q."""
    return LedgerService(store).suggestions(category, q)
