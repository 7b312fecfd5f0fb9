"""
Tests for the LedgerService.

Tests cover:
- Adding and deleting entries, transfers, and source snapshots
- Snapshot upsert semantics
- Day views recomputed from stored records
- Categories and item suggestions
"""

import datetime as dt
from decimal import Decimal

import pytest
from pydantic import ValidationError

from expense_ledger.models.enums import Direction, PaymentChannel, UnitType
from expense_ledger.schemas.ledger import EntryCreate, SourceUpsert, TransferCreate
from expense_ledger.services.ledger_service import (
    DEFAULT_CATEGORIES,
    LedgerService,
    month_bounds,
)

DAY = dt.date(2024, 5, 10)


# --- Helpers to reduce repetition ---

def make_service(store):
    return LedgerService(store, today=lambda: DAY)


def entry_request(**overrides):
    fields = {
        "date": DAY,
        "source_name": "Cash-Wallet",
        "category": "Home Expenses",
        "item_name": "Rice",
        "unit_price": "50",
        "direction": "CREDIT",
        "channel": "CASH",
    }
    fields.update(overrides)
    return EntryCreate(**fields)


class TestEntries:

    def test_add_entry_assigns_id(self, store):
        entry = make_service(store).add_entry(entry_request())
        assert entry.id is not None
        assert entry.total_amount == Decimal("50")
        assert entry.day_name == "Friday"

    def test_date_defaults_to_today(self, store):
        entry = make_service(store).add_entry(entry_request(date=None))
        assert entry.date == DAY

    def test_get_entries_newest_first(self, store):
        service = make_service(store)
        first = service.add_entry(entry_request(item_name="First"))
        second = service.add_entry(entry_request(item_name="Second"))

        entries = service.get_entries(DAY)

        assert [e.id for e in entries] == [second.id, first.id]

    def test_delete_entry(self, store):
        service = make_service(store)
        entry = service.add_entry(entry_request())

        assert service.delete_entry(entry.id) is True
        assert service.get_entries(DAY) == []

    def test_delete_missing_entry_is_noop(self, store):
        assert make_service(store).delete_entry(9999) is False


class TestEntryValidation:

    def test_legacy_channel_label_accepted(self):
        assert entry_request(channel="Card/UPI").channel == PaymentChannel.CARD

    def test_lowercase_direction_accepted(self):
        assert entry_request(direction="debit").direction == Direction.DEBIT

    def test_unit_display_label_accepted(self):
        assert entry_request(unit="Not Applicable").unit == UnitType.NOT_APPLICABLE

    def test_unparsable_amount_is_zero(self):
        assert entry_request(unit_price="abc").total_amount == Decimal("0")

    def test_explicit_total_kept(self):
        request = entry_request(quantity="2", unit_price="25", total_amount="50")
        assert request.total_amount == Decimal("50")

    def test_unknown_channel_rejected(self):
        with pytest.raises(ValidationError):
            entry_request(channel="BITCOIN")

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            entry_request(colour="red")


class TestSources:

    def test_upsert_replaces_existing(self, store):
        service = make_service(store)
        service.upsert_source(SourceUpsert(date=DAY, source_name="Bank", opening_cash="10"))
        service.upsert_source(SourceUpsert(date=DAY, source_name="Bank", opening_cash="25"))

        sources = service.get_sources(DAY)

        assert len(sources) == 1
        assert sources[0].opening_cash == Decimal("25")

    def test_delete_source_keeps_entries(self, store):
        service = make_service(store)
        service.upsert_source(SourceUpsert(date=DAY, source_name="Cash-Wallet", opening_cash="100"))
        service.add_entry(entry_request())

        assert service.delete_source(DAY, "Cash-Wallet") is True

        view = service.day_view(DAY)
        assert len(view.entries) == 1
        orphan = view.sources[0]
        assert orphan.has_snapshot is False
        assert orphan.closing.cash == Decimal("50")

    def test_delete_missing_source_is_noop(self, store):
        assert make_service(store).delete_source(DAY, "Nowhere") is False


class TestTransfers:

    def test_add_and_list(self, store):
        service = make_service(store)
        transfer = service.add_transfer(TransferCreate(
            date=DAY,
            from_holder="Me",
            to_holder="Landlord",
            amount="1,200.50",
            direction="DEBIT",
            channel="Cheque",
        ))

        assert transfer.amount == Decimal("1200.50")
        assert [t.id for t in service.get_transfers(DAY)] == [transfer.id]

    def test_delete_transfer(self, store):
        service = make_service(store)
        transfer = service.add_transfer(TransferCreate(
            from_holder="Me", to_holder="You", amount="5",
            direction="CREDIT", channel="CASH",
        ))
        assert service.delete_transfer(transfer.id) is True
        assert service.delete_transfer(transfer.id) is False


class TestDayView:

    def test_wallet_scenario(self, store):
        service = make_service(store)
        service.upsert_source(SourceUpsert(date=DAY, source_name="Cash-Wallet", opening_cash="100"))
        service.add_entry(entry_request(unit_price="50", direction="CREDIT", channel="CASH"))
        service.add_entry(entry_request(unit_price="20", direction="DEBIT", channel="CASH"))
        service.add_entry(entry_request(unit_price="30", direction="CREDIT", channel="CHEQUE"))

        view = service.day_view(DAY)

        assert view.grand_total.cash == Decimal("130")
        assert view.grand_total.cheque == Decimal("30")
        assert view.grand_total.card == Decimal("0")
        assert view.grand_total.total == Decimal("160")

    def test_view_reflects_deletes(self, store):
        service = make_service(store)
        entry = service.add_entry(entry_request())
        service.delete_entry(entry.id)

        assert service.day_view(DAY).grand_total.total == Decimal("0")

    def test_other_days_do_not_leak(self, store):
        service = make_service(store)
        service.add_entry(entry_request(date=DAY + dt.timedelta(days=1)))
        assert service.day_view(DAY).entries == []


class TestLookups:

    def test_categories_include_defaults(self, store):
        service = make_service(store)
        service.add_entry(entry_request(category="Garden"))

        categories = service.categories()

        assert "Garden" in categories
        assert set(DEFAULT_CATEGORIES) <= set(categories)
        assert categories == sorted(categories)

    def test_suggestions_match_fragment(self, store):
        service = make_service(store)
        service.add_entry(entry_request(item_name="Basmati Rice"))
        service.add_entry(entry_request(item_name="Rice Flour"))
        service.add_entry(entry_request(item_name="Rice Flour"))
        service.add_entry(entry_request(item_name="Milk"))
        service.add_entry(entry_request(item_name="Rice", category="Snacks & Fruit"))

        assert service.suggestions("Home Expenses", "Rice") == ["Basmati Rice", "Rice Flour"]

    def test_empty_query_gives_nothing(self, store):
        service = make_service(store)
        service.add_entry(entry_request())
        assert service.suggestions("Home Expenses", "") == []

    def test_wildcards_are_literal(self, store):
        service = make_service(store)
        service.add_entry(entry_request(item_name="Rice"))
        assert service.suggestions("Home Expenses", "%") == []


class TestMonthBounds:

    def test_month_bounds(self):
        assert month_bounds(DAY) == (dt.date(2024, 5, 1), dt.date(2024, 5, 31))

    def test_leap_february(self):
        assert month_bounds(dt.date(2024, 2, 14)) == (dt.date(2024, 2, 1), dt.date(2024, 2, 29))

    def test_december(self):
        assert month_bounds(dt.date(2023, 12, 31)) == (dt.date(2023, 12, 1), dt.date(2023, 12, 31))
