"""
Request-scoped dependencies for the gateway.

The store and currency service are owned by the app (set on
app.state at startup) and handed to handlers through these
functions, so tests can override them.
"""

import datetime as dt

from fastapi import HTTPException, Query, Request

from expense_ledger.config import Settings
from expense_ledger.services.currency_service import CurrencyService
from expense_ledger.store.ledger_store import LedgerStore


def get_store(request: Request) -> LedgerStore:
    return request.app.state.store


def get_currency(request: Request) -> CurrencyService:
    return request.app.state.currency


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def authorize() -> None:
    """
    Authorization hook for every /api route.

    The gateway serves a trusted LAN and has no credentials, so
    every request passes.
    """


def parse_day(value: str | None, field: str = "date") -> dt.date | None:
    if value is None or value == "":
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"{field}: expected YYYY-MM-DD, got '{value}'",
        )


def selected_day(date: str | None = Query(default=None)) -> dt.date:
    """The ?date= parameter, defaulting to today's local date."""
    return parse_day(date) or dt.date.today()
