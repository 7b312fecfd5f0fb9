"""
History merge layer.

Combines ledger entries and transfers across a date range into
one feed, newest first. The store answers single-day queries
cheaply, so the feed walks the range one calendar day at a time,
from the end date back to the start date.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Literal, Union

from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.models.transfer_entry import TransferEntry
from expense_ledger.store.ledger_store import LedgerStore, days_between

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpenseItem:
    entry: LedgerEntry
    kind: Literal["expense"] = "expense"

    @property
    def record(self) -> LedgerEntry:
        return self.entry


@dataclass(frozen=True)
class TransferItem:
    transfer: TransferEntry
    kind: Literal["transfer"] = "transfer"

    @property
    def record(self) -> TransferEntry:
        return self.transfer


HistoryItem = Union[ExpenseItem, TransferItem]


def history_sort_key(item: HistoryItem) -> tuple:
    """Sort key for newest-first ordering: date, then creation order."""
    record = item.record
    return (record.date, record.created_at, record.id)


class HistoryFeed:
    """
    Lazy, restartable feed over [start, end].

    Nothing is read until iteration starts, and each new iteration
    reads the store again, so a feed object can be re-walked after
    the data changes.
    """

    def __init__(self, store: LedgerStore, start: dt.date, end: dt.date):
        if start > end:
            raise ValueError(f"History start {start} is after end {end}")
        self.store = store
        self.start = start
        self.end = end

    def days(self) -> list[dt.date]:
        """Days of the range, newest first."""
        return list(reversed(days_between(self.start, self.end)))

    def __iter__(self) -> Iterator[HistoryItem]:
        for day in self.days():
            records = self.store.query_one_shot(day)
            items: list[HistoryItem] = [ExpenseItem(e) for e in records.entries]
            items.extend(TransferItem(t) for t in records.transfers)
            items.sort(key=history_sort_key, reverse=True)
            yield from items

    def to_list(self) -> list[HistoryItem]:
        return list(self)


def merge_range(store: LedgerStore, start: dt.date, end: dt.date) -> HistoryFeed:
    return HistoryFeed(store, start, end)


def delete_all(store: LedgerStore, items: Iterable[HistoryItem]) -> int:
    """
    Delete every record behind the given items, one at a time.

    Not atomic as a whole. On failure the records already deleted
    stay deleted, the error propagates, and nothing is duplicated.
    Returns how many records were actually removed.
    """
    targets = list(items)
    deleted = 0
    for item in targets:
        kind = LedgerEntry if isinstance(item, ExpenseItem) else TransferEntry
        try:
            if store.delete(kind, item.record.id):
                deleted += 1
        except Exception:
            logger.warning(
                "Bulk delete stopped after %d of %d records", deleted, len(targets)
            )
            raise
    logger.info("Bulk delete removed %d of %d records", deleted, len(targets))
    return deleted
