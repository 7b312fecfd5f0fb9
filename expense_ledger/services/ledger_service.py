"""
Ledger service: the operations both clients invoke.

The gateway's request handlers and the primary client call
this service; it turns validated requests into records, hands
them to the store, and turns store reads into computed views
through the balance engine and the history merge layer.

The service never caches a balance. Every view is recomputed
from the records returned by the store.
"""

import datetime as dt
from dataclasses import dataclass

from expense_ledger.models.bank_source import BankSource
from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.models.transfer_entry import TransferEntry
from expense_ledger.schemas.ledger import EntryCreate, SourceUpsert, TransferCreate
from expense_ledger.services import balance_engine
from expense_ledger.services.balance_engine import (
    GrandTotal,
    SourceSummary,
    TransferTotals,
)
from expense_ledger.services.history import HistoryFeed, delete_all, merge_range
from expense_ledger.store.ledger_store import DayRecords, LedgerStore


DEFAULT_CATEGORIES = [
    "Home Expenses",
    "Snacks & Fruit",
    "Utilities",
    "CNG/Petrol",
    "Assets",
    "Medical Expenses",
    "Education Expenses",
    "Rent",
    "Loans",
    "Others",
]


@dataclass(frozen=True)
class DayView:
    """Computed balances of one date."""
    date: dt.date
    records: DayRecords
    sources: list[SourceSummary]
    grand_total: GrandTotal
    transfer_totals: TransferTotals

    @property
    def entries(self) -> list[LedgerEntry]:
        return self.records.entries

    @property
    def transfers(self) -> list[TransferEntry]:
        return self.records.transfers


def month_bounds(day: dt.date) -> tuple[dt.date, dt.date]:
    """First and last day of the calendar month containing day."""
    start = day.replace(day=1)
    next_month = (start + dt.timedelta(days=32)).replace(day=1)
    return start, next_month - dt.timedelta(days=1)


class LedgerService:
    """
    All ledger operations pass through this service.

    The service takes the store as a constructor argument; the
    store owns transactions and locking, so each call here is
    atomic on its own.
    """

    def __init__(self, store: LedgerStore, today=dt.date.today):
        self.store = store
        self.today = today

    # --- Entries ---

    def add_entry(self, request: EntryCreate) -> LedgerEntry:
        entry = LedgerEntry(
            date=request.date or self.today(),
            source_name=request.source_name.strip(),
            person_name=request.person_name.strip(),
            category=request.category.strip(),
            item_name=request.item_name.strip(),
            note=request.note.strip(),
            quantity=request.quantity,
            unit=request.unit,
            unit_price=request.unit_price,
            total_amount=request.total_amount,
            direction=request.direction,
            channel=request.channel.value,
        )
        return self.store.insert(entry)

    def delete_entry(self, entry_id: int) -> bool:
        return self.store.delete(LedgerEntry, entry_id)

    def get_entries(self, day: dt.date) -> list[LedgerEntry]:
        """Entries of a date, newest first."""
        return self.store.query(LedgerEntry, day)

    # --- Transfers ---

    def add_transfer(self, request: TransferCreate) -> TransferEntry:
        transfer = TransferEntry(
            date=request.date or self.today(),
            from_holder=request.from_holder.strip(),
            from_source=request.from_source.strip(),
            from_account_ref=request.from_account_ref.strip(),
            to_holder=request.to_holder.strip(),
            to_source=request.to_source.strip(),
            to_account_ref=request.to_account_ref.strip(),
            amount=request.amount,
            direction=request.direction,
            channel=request.channel.value,
        )
        return self.store.insert(transfer)

    def delete_transfer(self, transfer_id: int) -> bool:
        return self.store.delete(TransferEntry, transfer_id)

    def get_transfers(self, day: dt.date) -> list[TransferEntry]:
        return self.store.query(TransferEntry, day)

    # --- Bank sources ---

    def upsert_source(self, request: SourceUpsert) -> BankSource:
        """Insert the snapshot, replacing any existing one for that date and name."""
        source = BankSource(
            date=request.date or self.today(),
            source_name=request.source_name.strip(),
            opening_cash=request.opening_cash,
            opening_cheque=request.opening_cheque,
            opening_card=request.opening_card,
        )
        return self.store.insert(source)

    def delete_source(self, day: dt.date, source_name: str) -> bool:
        """Remove a snapshot. Entries naming the source are kept."""
        return self.store.delete(BankSource, (day, source_name))

    def get_sources(self, day: dt.date) -> list[BankSource]:
        return self.store.query(BankSource, day)

    # --- Computed views ---

    def day_view(self, day: dt.date) -> DayView:
        return build_day_view(self.store.query_one_shot(day))

    def history(self, start: dt.date, end: dt.date) -> HistoryFeed:
        return merge_range(self.store, start, end)

    def delete_history(self, start: dt.date, end: dt.date) -> int:
        return delete_all(self.store, self.history(start, end))

    # --- Lookups ---

    def categories(self) -> list[str]:
        """Stored categories merged with the defaults, sorted."""
        return sorted(set(self.store.categories()) | set(DEFAULT_CATEGORIES))

    def suggestions(self, category: str, query: str) -> list[str]:
        if not query:
            return []
        return self.store.item_names(category, query)


def build_day_view(records: DayRecords) -> DayView:
    sources = balance_engine.summarize_day(records.entries, records.sources, records.date)
    return DayView(
        date=records.date,
        records=records,
        sources=sources,
        grand_total=balance_engine.grand_total_of(sources),
        transfer_totals=balance_engine.summarize_transfers(records.transfers),
    )
