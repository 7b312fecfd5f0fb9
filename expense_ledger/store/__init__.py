"""The ledger store and its concurrency primitives."""

from expense_ledger.store.errors import StoreError
from expense_ledger.store.ledger_store import (
    LedgerStore,
    DayRecords,
    RangeRecords,
    DayStream,
    day_key,
    days_between,
)
from expense_ledger.store.locks import KeyedLockRegistry, ReadWriteLock
from expense_ledger.store.notifications import ChangeBus, Subscription

__all__ = [
    "StoreError",
    "LedgerStore",
    "DayRecords",
    "RangeRecords",
    "DayStream",
    "day_key",
    "days_between",
    "KeyedLockRegistry",
    "ReadWriteLock",
    "ChangeBus",
    "Subscription",
]
