"""
Tests for the CSV report encoding.

Tests cover:
- Grand total row for each screen
- Conversion and half-up rounding at render time
- Separators inside free text
- Empty snapshots
"""

import csv
import datetime as dt
import io
from decimal import Decimal

from expense_ledger.models.bank_source import BankSource
from expense_ledger.models.enums import Direction, UnitType
from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.models.transfer_entry import TransferEntry
from expense_ledger.reports.delimited import clean, render_delimited
from expense_ledger.reports.model import ReportSnapshot
from expense_ledger.services.currency_service import CurrencyState
from expense_ledger.store.ledger_store import DayRecords, RangeRecords

DAY = dt.date(2024, 5, 10)
RATE_80 = CurrencyState(base="USD", target="INR", rate=Decimal("80"))


# --- Helpers to reduce repetition ---

def make_entry(amount, direction, channel="CASH", item="Item", note="", category="Home Expenses"):
    return LedgerEntry(
        date=DAY,
        source_name="Cash-Wallet",
        person_name="Asha",
        category=category,
        item_name=item,
        note=note,
        quantity=Decimal("1"),
        unit=UnitType.PIECE,
        unit_price=Decimal(amount),
        total_amount=Decimal(amount),
        direction=direction,
        channel=channel,
    )


def make_transfer(amount, direction, day=DAY):
    return TransferEntry(
        date=day,
        from_holder="Asha",
        from_source="HDFC",
        from_account_ref="0012",
        to_holder="Landlord",
        to_source="SBI",
        to_account_ref="9981",
        amount=Decimal(amount),
        direction=direction,
        channel="CARD",
    )


def wallet_records():
    return DayRecords(
        date=DAY,
        entries=[
            make_entry("50", Direction.CREDIT, "CASH"),
            make_entry("20", Direction.DEBIT, "CASH"),
            make_entry("30", Direction.CREDIT, "CHEQUE"),
        ],
        sources=[BankSource(
            date=DAY,
            source_name="Cash-Wallet",
            opening_cash=Decimal("100"),
            opening_cheque=Decimal("0"),
            opening_card=Decimal("0"),
        )],
    )


def rows_of(content: bytes) -> list[list[str]]:
    return list(csv.reader(io.StringIO(content.decode("utf-8"))))


def grand_total_row(content: bytes) -> list[str]:
    return next(r for r in rows_of(content) if r and r[0] == "GRAND TOTAL")


class TestDailyReport:

    def test_grand_total_in_both_currencies(self):
        content = render_delimited(ReportSnapshot.daily(wallet_records(), RATE_80))
        assert grand_total_row(content) == ["GRAND TOTAL", "160.00", "12800.00"]

    def test_header_lines(self):
        rows = rows_of(render_delimited(ReportSnapshot.daily(wallet_records(), RATE_80)))
        assert rows[0] == ["Daily Expense Report"]
        assert rows[1] == ["Person Name", "Asha"]
        assert rows[2] == ["Date", "10/05/2024"]
        assert rows[3] == ["Rate", "1 USD = 80 INR"]

    def test_closing_summary_rows(self):
        rows = rows_of(render_delimited(ReportSnapshot.daily(wallet_records(), RATE_80)))
        assert ["Cash", "100.00", "50.00", "20.00", "130.00"] in rows
        assert ["Cheque", "0.00", "30.00", "0.00", "30.00"] in rows
        assert ["Total", "", "", "", "160.00"] in rows

    def test_conversion_disabled_uses_rate_one(self):
        currency = CurrencyState(base="USD", target="INR", rate=Decimal("80"), enabled=False)
        content = render_delimited(ReportSnapshot.daily(wallet_records(), currency))
        assert grand_total_row(content) == ["GRAND TOTAL", "160.00", "160.00"]

    def test_rounds_half_up_at_render(self):
        records = DayRecords(date=DAY, entries=[make_entry("0.005", Direction.CREDIT)])
        content = render_delimited(ReportSnapshot.daily(records, CurrencyState("USD", "INR")))
        assert grand_total_row(content)[1] == "0.01"

    def test_stored_amount_beyond_default_precision_renders(self):
        records = DayRecords(date=DAY, entries=[make_entry("1e30", Direction.CREDIT)])
        content = render_delimited(ReportSnapshot.daily(records, RATE_80))
        assert grand_total_row(content) == [
            "GRAND TOTAL", "1" + "0" * 30 + ".00", "8" + "0" * 31 + ".00",
        ]

    def test_free_text_separators_replaced(self):
        records = DayRecords(
            date=DAY,
            entries=[make_entry("5", Direction.DEBIT, item="Eggs, brown", note="two\nboxes")],
        )
        rows = rows_of(render_delimited(ReportSnapshot.daily(records, RATE_80)))
        entry_row = next(r for r in rows if len(r) > 1 and r[1].startswith("Eggs"))
        assert entry_row[1] == "Eggs  brown"
        assert entry_row[2] == "two boxes"

    def test_every_entry_row_has_same_width(self):
        records = DayRecords(
            date=DAY,
            entries=[make_entry("5", Direction.DEBIT, item="a,b,c", note="x,\r\ny")],
        )
        rows = rows_of(render_delimited(ReportSnapshot.daily(records, RATE_80)))
        header = next(r for r in rows if r and r[0] == "Category")
        entry_row = next(r for r in rows if r and r[0] == "Home Expenses")
        assert len(entry_row) == len(header)

    def test_orphaned_source_listed(self):
        records = DayRecords(date=DAY, entries=[make_entry("5", Direction.CREDIT)])
        rows = rows_of(render_delimited(ReportSnapshot.daily(records, RATE_80)))
        assert ["BANK SOURCE", "Cash-Wallet"] in rows
        assert ["Opening Cash", "0.00"] in rows


class TestOtherScreens:

    def test_accounts_grand_total_is_transfer_net(self):
        records = DayRecords(
            date=DAY,
            transfers=[
                make_transfer("500", Direction.CREDIT),
                make_transfer("120.5", Direction.DEBIT),
            ],
        )
        content = render_delimited(ReportSnapshot.accounts(records, RATE_80))

        assert grand_total_row(content) == ["GRAND TOTAL", "379.50", "30360.00"]
        rows = rows_of(content)
        assert rows[0] == ["Account Transactions"]
        assert ["Net", "379.50"] in rows

    def test_account_refs_kept_as_text(self):
        records = DayRecords(date=DAY, transfers=[make_transfer("1", Direction.CREDIT)])
        rows = rows_of(render_delimited(ReportSnapshot.accounts(records, RATE_80)))
        transfer_row = next(r for r in rows if r and r[0] == "Asha")
        assert transfer_row[2] == "'0012"

    def test_history_covers_entries_and_transfers(self):
        end = DAY + dt.timedelta(days=5)
        records = RangeRecords(
            start=DAY,
            end=end,
            entries=[make_entry("40", Direction.CREDIT)],
            transfers=[make_transfer("15", Direction.DEBIT, day=end)],
        )
        content = render_delimited(ReportSnapshot.history(records, RATE_80))

        assert grand_total_row(content) == ["GRAND TOTAL", "25.00", "2000.00"]
        rows = rows_of(content)
        assert rows[2] == ["Date", "10/05/2024 - 15/05/2024"]
        assert ["EXPENSES"] in rows
        assert ["ACCOUNT TRANSACTIONS"] in rows


class TestEmptySnapshots:

    def test_empty_daily_renders(self):
        snapshot = ReportSnapshot.daily(DayRecords(date=DAY), RATE_80)
        assert snapshot.is_empty
        content = render_delimited(snapshot)
        assert grand_total_row(content) == ["GRAND TOTAL", "0.00", "0.00"]
        assert rows_of(content)[1] == ["Person Name", "Unknown"]

    def test_empty_history_renders(self):
        snapshot = ReportSnapshot.history(RangeRecords(start=DAY, end=DAY), RATE_80)
        assert grand_total_row(render_delimited(snapshot))[1] == "0.00"


class TestClean:

    def test_clean(self):
        assert clean("a,b\nc\rd") == "a b c d"
        assert clean(12) == "12"
