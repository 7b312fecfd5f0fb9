"""Transfer (account transaction) endpoints."""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException

from expense_ledger.api.dependencies import authorize, get_store, selected_day
from expense_ledger.schemas.ledger import (
    DeleteResponse,
    TransferCreate,
    TransferResponse,
)
from expense_ledger.services.ledger_service import LedgerService
from expense_ledger.store.ledger_store import LedgerStore

router = APIRouter(
    prefix="/api/accounts",
    tags=["Transfers"],
    dependencies=[Depends(authorize)],
)


@router.get("", response_model=list[TransferResponse])
def list_transfers(
    day: dt.date = Depends(selected_day),
    store: LedgerStore = Depends(get_store),
):
    return LedgerService(store).get_transfers(day)


@router.post("", response_model=TransferResponse, status_code=201)
def add_transfer(
    request: TransferCreate,
    store: LedgerStore = Depends(get_store),
):
    service = LedgerService(store)
    try:
        return service.add_transfer(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{transfer_id}", response_model=DeleteResponse)
def delete_transfer(
    transfer_id: int,
    store: LedgerStore = Depends(get_store),
):
    return DeleteResponse(deleted=LedgerService(store).delete_transfer(transfer_id))
