"""Currency setting endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from expense_ledger.api.dependencies import authorize, get_currency
from expense_ledger.schemas.currency import CurrencyResponse, CurrencyUpdate
from expense_ledger.services.currency_service import (
    AVAILABLE_CURRENCIES,
    CurrencyService,
    CurrencyState,
)

router = APIRouter(
    prefix="/api/currency",
    tags=["Currency"],
    dependencies=[Depends(authorize)],
)


def currency_response(state: CurrencyState) -> CurrencyResponse:
    return CurrencyResponse(
        base=state.base,
        target=state.target,
        rate=state.rate,
        enabled=state.enabled,
        effective_rate=state.effective_rate,
        notice=state.notice,
        available=AVAILABLE_CURRENCIES,
    )


@router.get("", response_model=CurrencyResponse)
def get_currency_state(currency: CurrencyService = Depends(get_currency)):
    """Active pair and the best rate known right now. Never waits on a lookup."""
    return currency_response(currency.refresh())


@router.post("", response_model=CurrencyResponse)
def set_currency(
    request: CurrencyUpdate,
    currency: CurrencyService = Depends(get_currency),
):
    try:
        state = currency.set_currencies(request.base, request.target, request.enabled)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return currency_response(state)
