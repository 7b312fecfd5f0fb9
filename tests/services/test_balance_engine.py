"""
Tests for the balance engine.

Tests cover:
- Closing balance per channel from opening plus movements
- Order independence
- Unknown and missing channels counted as CASH
- Orphaned source names with an implicit zero opening
- Aggregation across sources
- Transfer and entry totals
"""

import datetime as dt
import random
from decimal import Decimal

from expense_ledger.models.bank_source import BankSource
from expense_ledger.models.enums import Direction, PaymentChannel
from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.models.transfer_entry import TransferEntry
from expense_ledger.services import balance_engine
from expense_ledger.services.balance_engine import ClosingBalances

DAY = dt.date(2024, 5, 10)


# --- Helpers to reduce repetition ---

def make_source(name="Cash-Wallet", cash="0", cheque="0", card="0"):
    return BankSource(
        date=DAY,
        source_name=name,
        opening_cash=Decimal(cash),
        opening_cheque=Decimal(cheque),
        opening_card=Decimal(card),
    )


def make_entry(amount, direction, channel="CASH", source="Cash-Wallet"):
    return LedgerEntry(
        date=DAY,
        source_name=source,
        category="Home Expenses",
        item_name="Item",
        total_amount=Decimal(amount),
        direction=direction,
        channel=channel,
    )


def wallet_entries():
    return [
        make_entry("50", Direction.CREDIT, "CASH"),
        make_entry("20", Direction.DEBIT, "CASH"),
        make_entry("30", Direction.CREDIT, "CHEQUE"),
    ]


class TestComputeClosing:

    def test_wallet_scenario(self):
        source = make_source(cash="100")
        closing = balance_engine.compute_closing(wallet_entries(), source)

        assert closing == ClosingBalances(
            cash=Decimal("130"), cheque=Decimal("30"), card=Decimal("0")
        )
        assert closing.total == Decimal("160")

    def test_no_entries_returns_opening(self):
        source = make_source(cash="10", cheque="20", card="30")
        closing = balance_engine.compute_closing([], source)
        assert closing == ClosingBalances(Decimal("10"), Decimal("20"), Decimal("30"))

    def test_missing_snapshot_opens_at_zero(self):
        closing = balance_engine.compute_closing(wallet_entries(), None)
        assert closing.cash == Decimal("30")
        assert closing.cheque == Decimal("30")
        assert closing.card == Decimal("0")

    def test_order_does_not_matter(self):
        source = make_source(cash="100")
        entries = wallet_entries() + [
            make_entry("12.35", Direction.DEBIT, "CARD"),
            make_entry("0.1", Direction.CREDIT, "CARD"),
            make_entry("0.2", Direction.CREDIT, "CARD"),
        ]
        expected = balance_engine.compute_closing(entries, source)

        shuffler = random.Random(7)
        for _ in range(10):
            shuffled = entries[:]
            shuffler.shuffle(shuffled)
            assert balance_engine.compute_closing(shuffled, source) == expected

    def test_total_is_opening_plus_net_movement(self):
        source = make_source(cash="7.10", cheque="3", card="11.45")
        entries = wallet_entries() + [
            make_entry("2.40", Direction.DEBIT, "CARD"),
            make_entry("9.99", Direction.CREDIT, "UNKNOWN"),
        ]
        credits = sum(
            (e.total_amount for e in entries if e.direction == Direction.CREDIT), Decimal("0")
        )
        debits = sum(
            (e.total_amount for e in entries if e.direction == Direction.DEBIT), Decimal("0")
        )

        closing = balance_engine.compute_closing(entries, source)

        assert closing.total == Decimal("21.55") + credits - debits

    def test_decimal_sums_are_exact(self):
        entries = [make_entry("0.1", Direction.CREDIT, "CARD") for _ in range(3)]
        closing = balance_engine.compute_closing(entries, None)
        assert closing.card == Decimal("0.3")

    def test_negative_closing_is_allowed(self):
        closing = balance_engine.compute_closing(
            [make_entry("75", Direction.DEBIT, "CASH")], make_source(cash="50")
        )
        assert closing.cash == Decimal("-25")

    def test_unknown_channel_counts_as_cash(self):
        entries = [
            make_entry("5", Direction.CREDIT, "BARTER"),
            make_entry("7", Direction.CREDIT, None),
        ]
        closing = balance_engine.compute_closing(entries, None)
        assert closing.cash == Decimal("12")
        assert closing.cheque == Decimal("0")
        assert closing.card == Decimal("0")

    def test_legacy_labels_map_to_channels(self):
        entries = [
            make_entry("5", Direction.CREDIT, "Card/UPI"),
            make_entry("3", Direction.CREDIT, "Cheque"),
        ]
        closing = balance_engine.compute_closing(entries, None)
        assert closing.card == Decimal("5")
        assert closing.cheque == Decimal("3")


class TestSummarizeDay:

    def test_snapshot_sources_come_first(self):
        sources = [make_source("Alpha"), make_source("Beta")]
        summaries = balance_engine.summarize_day([], sources, DAY)
        assert [s.source_name for s in summaries] == ["Alpha", "Beta"]
        assert all(s.has_snapshot for s in summaries)

    def test_orphaned_source_gets_zero_opening(self):
        entries = [make_entry("40", Direction.CREDIT, "CASH", source="Ghost")]
        summaries = balance_engine.summarize_day(entries, [make_source("Alpha")], DAY)

        ghost = summaries[-1]
        assert ghost.source_name == "Ghost"
        assert ghost.has_snapshot is False
        assert ghost.opening == ClosingBalances()
        assert ghost.closing.cash == Decimal("40")

    def test_entries_only_affect_their_source(self):
        sources = [make_source("Alpha", cash="10"), make_source("Beta", cash="10")]
        entries = [make_entry("5", Direction.DEBIT, "CASH", source="Alpha")]
        alpha, beta = balance_engine.summarize_day(entries, sources, DAY)
        assert alpha.closing.cash == Decimal("5")
        assert beta.closing.cash == Decimal("10")

    def test_channel_detail(self):
        summary = balance_engine.summarize_day(
            wallet_entries(), [make_source(cash="100")], DAY
        )[0]
        cash = summary.channel(PaymentChannel.CASH)
        assert cash.opening == Decimal("100")
        assert cash.credit == Decimal("50")
        assert cash.debit == Decimal("20")
        assert cash.closing == Decimal("130")


class TestAggregation:

    def test_grand_total_is_sum_of_closings(self):
        sources = [make_source("Cash-Wallet", cash="100"), make_source("Bank", card="500")]
        entries = wallet_entries() + [make_entry("45", Direction.DEBIT, "CARD", source="Bank")]
        summaries = balance_engine.summarize_day(entries, sources, DAY)

        grand = balance_engine.grand_total_of(summaries)
        assert grand.cash == Decimal("130")
        assert grand.cheque == Decimal("30")
        assert grand.card == Decimal("455")
        assert grand.total == sum((s.closing.total for s in summaries), Decimal("0"))

    def test_source_without_entries_contributes_opening(self):
        untouched = make_source("Savings", cash="1", cheque="2", card="3")
        grand = balance_engine.aggregate_across_sources(
            [(untouched, balance_engine.compute_closing([], untouched))]
        )
        assert grand.total == Decimal("6")

    def test_no_sources_is_zero(self):
        assert balance_engine.aggregate_across_sources([]).total == Decimal("0")


class TestTotals:

    def test_transfer_totals_per_channel(self):
        transfers = [
            TransferEntry(date=DAY, from_holder="A", to_holder="B", amount=Decimal("100"),
                          direction=Direction.CREDIT, channel="CARD"),
            TransferEntry(date=DAY, from_holder="A", to_holder="C", amount=Decimal("40"),
                          direction=Direction.DEBIT, channel="CASH"),
            TransferEntry(date=DAY, from_holder="A", to_holder="D", amount=Decimal("10"),
                          direction=Direction.DEBIT, channel="CARD"),
        ]
        totals = balance_engine.summarize_transfers(transfers)

        assert totals.credit == Decimal("100")
        assert totals.debit == Decimal("50")
        assert totals.net == Decimal("50")
        assert totals.by_channel[PaymentChannel.CARD].net == Decimal("90")
        assert totals.by_channel[PaymentChannel.CHEQUE].net == Decimal("0")

    def test_entry_totals(self):
        totals = balance_engine.summarize_entries(wallet_entries())
        assert totals.credit == Decimal("80")
        assert totals.debit == Decimal("20")
        assert totals.net == Decimal("60")
