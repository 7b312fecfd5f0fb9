"""Bank source snapshot endpoints."""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException

from expense_ledger.api.dependencies import authorize, get_store, selected_day
from expense_ledger.schemas.ledger import (
    DeleteResponse,
    SourceResponse,
    SourceUpsert,
)
from expense_ledger.services.ledger_service import LedgerService
from expense_ledger.store.ledger_store import LedgerStore

router = APIRouter(
    prefix="/api/banks",
    tags=["Bank Sources"],
    dependencies=[Depends(authorize)],
)


@router.get("", response_model=list[SourceResponse])
def list_sources(
    day: dt.date = Depends(selected_day),
    store: LedgerStore = Depends(get_store),
):
    return LedgerService(store).get_sources(day)


@router.post("", response_model=SourceResponse)
def upsert_source(
    request: SourceUpsert,
    store: LedgerStore = Depends(get_store),
):
    """
    Create or update the opening balances of a source.

    Posting the same date and name again replaces the balances.
    """
    service = LedgerService(store)
    try:
        return service.upsert_source(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{source_name}", response_model=DeleteResponse)
def delete_source(
    source_name: str,
    day: dt.date = Depends(selected_day),
    store: LedgerStore = Depends(get_store),
):
    """Delete a snapshot. Entries that name the source are kept."""
    return DeleteResponse(
        deleted=LedgerService(store).delete_source(day, source_name)
    )
