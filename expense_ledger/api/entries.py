"""
Ledger entry endpoints.

The API layer is thin: it handles HTTP concerns (status codes,
response formatting) and delegates everything else to the
LedgerService.
"""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException

from expense_ledger.api.dependencies import authorize, get_store, selected_day
from expense_ledger.schemas.ledger import DeleteResponse, EntryCreate, EntryResponse
from expense_ledger.services.ledger_service import LedgerService
from expense_ledger.store.ledger_store import LedgerStore

router = APIRouter(
    prefix="/api/expenses",
    tags=["Expenses"],
    dependencies=[Depends(authorize)],
)


@router.get("", response_model=list[EntryResponse])
def list_entries(
    day: dt.date = Depends(selected_day),
    store: LedgerStore = Depends(get_store),
):
    """Entries for ?date= (default today), newest first."""
    return LedgerService(store).get_entries(day)


@router.post("", response_model=EntryResponse, status_code=201)
def add_entry(
    request: EntryCreate,
    store: LedgerStore = Depends(get_store),
):
    service = LedgerService(store)
    try:
        return service.add_entry(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{entry_id}", response_model=DeleteResponse)
def delete_entry(
    entry_id: int,
    store: LedgerStore = Depends(get_store),
):
    """
    Delete an entry by id.

    Deleting an id that does not exist succeeds with deleted=false.
    """
    return DeleteResponse(deleted=LedgerService(store).delete_entry(entry_id))
