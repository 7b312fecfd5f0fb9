"""
Shared test fixtures.

Every test gets its own file-backed SQLite database in a
temporary directory, so tests never touch the real store and
worker threads can share the database.
"""

import datetime as dt
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from expense_ledger.api.dependencies import get_currency, get_store
from expense_ledger.main import create_app
from expense_ledger.services.currency_service import CurrencyService, RateLookupError
from expense_ledger.store.ledger_store import LedgerStore

DAY = dt.date(2024, 5, 10)


class FakeRateProvider:
    """Stands in for the HTTP rate provider."""

    def __init__(self, rates=None):
        self.rates = rates if rates is not None else {("USD", "INR"): Decimal("83.25")}
        self.calls = []
        self.fail = False

    def fetch_rate(self, base, target):
        self.calls.append((base, target))
        if self.fail:
            raise RateLookupError(f"Rate lookup for {base} failed: offline")
        if (base, target) not in self.rates:
            raise RateLookupError(f"No {target} rate for {base}")
        return self.rates[(base, target)]

    def close(self):
        pass


@pytest.fixture
def store(tmp_path):
    ledger_store = LedgerStore.from_url(f"sqlite:///{tmp_path / 'ledger.db'}")
    ledger_store.create_schema()
    yield ledger_store
    ledger_store.dispose()


@pytest.fixture
def rate_provider():
    return FakeRateProvider()


@pytest.fixture
def currency(rate_provider):
    """Currency service that looks rates up inline instead of in a thread."""
    return CurrencyService(rate_provider, background=False, today=lambda: DAY)


@pytest.fixture
def client(store, currency):
    """
    Test client bound to the test store and currency service.

    The dependency overrides make every route use the fixtures
    instead of whatever the app would build from settings.
    """
    app = create_app(store=store, currency=currency)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_currency] = lambda: currency
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
