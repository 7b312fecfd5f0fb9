"""
Health check endpoint.

Used by humans and scripts to verify the gateway is running
and can reach its store.
"""

from fastapi import APIRouter, Depends

from expense_ledger.api.dependencies import get_store
from expense_ledger.store.errors import StoreError
from expense_ledger.store.ledger_store import LedgerStore

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(store: LedgerStore = Depends(get_store)):
    """
    Return gateway health including store connectivity.

    The store check runs a trivial query; if it fails the
    gateway reports itself as degraded rather than erroring.
    """
    try:
        store.ping()
        store_status = "healthy"
    except StoreError:
        store_status = "unhealthy"

    return {
        "status": "healthy" if store_status == "healthy" else "degraded",
        "service": "expense-ledger-gateway",
        "store": store_status,
    }
