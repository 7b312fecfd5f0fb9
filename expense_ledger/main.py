"""
Expense Ledger Gateway - FastAPI Application.

Builds the app the gateway serves. All routers are registered here.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse

from expense_ledger.api.currency import router as currency_router
from expense_ledger.api.entries import router as entries_router
from expense_ledger.api.export import router as export_router
from expense_ledger.api.health import router as health_router
from expense_ledger.api.lifecycle import RequestStage, RequestTrace
from expense_ledger.api.sources import router as sources_router
from expense_ledger.api.transfers import router as transfers_router
from expense_ledger.api.views import router as views_router
from expense_ledger.config import Settings, get_settings
from expense_ledger.logging import setup_logging
from expense_ledger.services.currency_service import CurrencyService, RateProvider
from expense_ledger.store.errors import StoreError
from expense_ledger.store.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def validation_detail(exc: RequestValidationError) -> str:
    """Collapse pydantic's error list into one readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(
            str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")
        )
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


async def handle_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": validation_detail(exc)})


async def handle_value_error(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def handle_store_error(request: Request, exc: StoreError):
    return JSONResponse(status_code=503, content={"detail": "Store operation failed"})


async def trace_requests(request: Request, call_next):
    """Tag the request, log its terminal stage, and never let an exception escape."""
    trace = RequestTrace(request.method, request.url.path)
    request.state.trace = trace

    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled error in %r", trace)
        response = JSONResponse(status_code=500, content={"detail": "Internal server error"})
    else:
        # Error statuses may come from validation before the handler ran
        if response.status_code < 400:
            trace.executed()

    stage = trace.finish(response.status_code)
    level = logging.WARNING if stage == RequestStage.RESPONDED_WITH_ERROR else logging.INFO
    logger.log(
        level,
        "Request %d %s %s -> %d (%s)",
        trace.id, trace.method, trace.path, response.status_code, stage.value,
    )
    return response


def create_app(
    store: LedgerStore | None = None,
    currency: CurrencyService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Build the gateway app.

    A store or currency service passed in is used as-is and left
    open on shutdown; anything missing is built from settings.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL)

        owned_store = None
        provider = None
        if getattr(app.state, "store", None) is None:
            owned_store = LedgerStore.from_url(settings.DATABASE_URL)
            app.state.store = owned_store
        app.state.store.create_schema()

        if getattr(app.state, "currency", None) is None:
            provider = RateProvider(settings.RATE_API_URL, settings.RATE_TIMEOUT)
            app.state.currency = CurrencyService(
                provider,
                base=settings.BASE_CURRENCY,
                target=settings.TARGET_CURRENCY,
            )

        yield

        if provider is not None:
            provider.close()
            app.state.currency = None
        if owned_store is not None:
            owned_store.dispose()
            app.state.store = None

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Day-scoped expense and bank ledger with LAN sync",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.currency = currency
    app.state.settings = settings

    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(ValueError, handle_value_error)
    app.add_exception_handler(StoreError, handle_store_error)
    app.middleware("http")(trace_requests)

    # Register routers
    app.include_router(health_router)
    app.include_router(entries_router)
    app.include_router(transfers_router)
    app.include_router(sources_router)
    app.include_router(views_router)
    app.include_router(currency_router)
    app.include_router(export_router)

    @app.get("/", include_in_schema=False)
    def control_page():
        """The browser control page for other devices on the LAN."""
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    return app


app = create_app()
