"""
The ledger store.

A keyed, queryable append/delete store for the three record
kinds. Both the gateway's worker threads and the primary client
go through this class, so it is the single serialization point:

1. Every mutation takes the write lock of its day key
2. Every read takes the read lock of the day(s) it covers
3. Each mutation is one database transaction (all or nothing)
4. Subscribers of a day are notified after the commit

The day key covers every (date, source_name) pair on that date,
which keeps a whole-day view consistent across sources.
"""

import datetime as dt
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from expense_ledger.models.base import Base, build_engine, build_session_factory
from expense_ledger.models.bank_source import BankSource
from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.models.transfer_entry import TransferEntry
from expense_ledger.store.errors import StoreError
from expense_ledger.store.locks import KeyedLockRegistry
from expense_ledger.store.notifications import ChangeBus, Subscription

logger = logging.getLogger(__name__)

RECORD_KINDS = (LedgerEntry, TransferEntry, BankSource)


def day_key(day: dt.date) -> tuple:
    return ("day", day)


def days_between(start: dt.date, end: dt.date) -> list[dt.date]:
    """Every calendar day from start to end, both included."""
    if start > end:
        raise ValueError(f"Range start {start} is after range end {end}")
    return [start + dt.timedelta(days=n) for n in range((end - start).days + 1)]


@dataclass
class DayRecords:
    """Everything stored for one date, read under a single lock."""
    date: dt.date
    entries: list[LedgerEntry] = field(default_factory=list)
    transfers: list[TransferEntry] = field(default_factory=list)
    sources: list[BankSource] = field(default_factory=list)


@dataclass
class RangeRecords:
    start: dt.date
    end: dt.date
    entries: list[LedgerEntry] = field(default_factory=list)
    transfers: list[TransferEntry] = field(default_factory=list)
    sources: list[BankSource] = field(default_factory=list)


class LedgerStore:
    """
    Store front for entries, transfers, and bank source snapshots.

    Records returned from queries are detached from any session;
    they are plain snapshots of committed rows.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        locks: KeyedLockRegistry | None = None,
        changes: ChangeBus | None = None,
    ):
        self._session_factory = session_factory
        self.locks = locks or KeyedLockRegistry()
        self.changes = changes or ChangeBus()

    @classmethod
    def from_url(cls, database_url: str) -> "LedgerStore":
        engine = build_engine(database_url)
        return cls(build_session_factory(engine))

    @property
    def engine(self):
        return self._session_factory.kw["bind"]

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        """
        One session per store call.

        Any database error rolls the session back and is re-raised
        as StoreError for the immediate caller only.
        """
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Store %s failed: %s", operation, e)
            raise StoreError(operation, e) from e
        finally:
            db.close()

    # --- Mutations ---

    def insert(self, record):
        """
        Insert a ledger entry or transfer, or insert-or-replace a
        bank source snapshot. Returns the stored record.
        """
        if not isinstance(record, RECORD_KINDS):
            raise TypeError(f"Unsupported record kind: {type(record).__name__}")

        key = day_key(record.date)
        with self.locks.write(key):
            with self._session("insert") as db:
                if isinstance(record, BankSource):
                    record = db.merge(record)
                else:
                    db.add(record)
                db.commit()
        logger.debug("Inserted %r", record)
        self.changes.publish(key)
        return record

    def delete(self, kind: type, ident) -> bool:
        """
        Delete one record by identity.

        ident is the integer id for entries and transfers, and
        (date, source_name) for bank sources. Returns False when
        nothing matched; that is not an error.
        """
        if kind not in RECORD_KINDS:
            raise TypeError(f"Unsupported record kind: {kind.__name__}")

        day = self._locate(kind, ident)
        if day is None:
            return False

        key = day_key(day)
        with self.locks.write(key):
            with self._session("delete") as db:
                record = db.get(kind, ident)
                if record is None:
                    return False
                db.delete(record)
                db.commit()
        logger.debug("Deleted %s %r", kind.__name__, ident)
        self.changes.publish(key)
        return True

    def _locate(self, kind: type, ident) -> dt.date | None:
        """The date a record lives on. Records never change date."""
        if kind is BankSource:
            return ident[0]
        with self._session("locate") as db:
            return db.execute(
                select(kind.date).where(kind.id == ident)
            ).scalar_one_or_none()

    # --- Queries ---

    def query(self, kind: type, day: dt.date) -> list:
        """All records of one kind on a date."""
        with self.locks.read(day_key(day)):
            with self._session("query") as db:
                return _select_day(db, kind, day)

    def query_one_shot(self, day: dt.date) -> DayRecords:
        """Entries, transfers, and sources of a date as one consistent read."""
        with self.locks.read(day_key(day)):
            with self._session("query_one_shot") as db:
                return DayRecords(
                    date=day,
                    entries=_select_day(db, LedgerEntry, day),
                    transfers=_select_day(db, TransferEntry, day),
                    sources=_select_day(db, BankSource, day),
                )

    def query_range(self, start: dt.date, end: dt.date) -> RangeRecords:
        """Everything dated within [start, end], newest first."""
        days = days_between(start, end)
        with self.locks.read_many(day_key(d) for d in days):
            with self._session("query_range") as db:
                return RangeRecords(
                    start=start,
                    end=end,
                    entries=_select_range(db, LedgerEntry, start, end),
                    transfers=_select_range(db, TransferEntry, start, end),
                    sources=_select_range(db, BankSource, start, end),
                )

    def subscribe(self, day: dt.date) -> "DayStream":
        """Continuous query: a stream that yields the day again after each change."""
        return DayStream(self, day)

    def categories(self) -> list[str]:
        with self._session("categories") as db:
            return list(db.execute(
                select(LedgerEntry.category)
                .distinct()
                .order_by(LedgerEntry.category)
            ).scalars())

    def item_names(self, category: str, fragment: str) -> list[str]:
        """Distinct item labels in a category containing fragment."""
        with self._session("item_names") as db:
            return list(db.execute(
                select(LedgerEntry.item_name)
                .where(
                    LedgerEntry.category == category,
                    LedgerEntry.item_name.contains(fragment, autoescape=True),
                )
                .distinct()
                .order_by(LedgerEntry.item_name)
            ).scalars())

    def ping(self) -> None:
        with self._session("ping") as db:
            db.execute(text("SELECT 1"))


def _order_for(kind: type):
    if kind is BankSource:
        return (BankSource.date.desc(), BankSource.source_name.asc())
    return (kind.date.desc(), kind.created_at.desc(), kind.id.desc())


def _select_day(db: Session, kind: type, day: dt.date) -> list:
    return list(db.execute(
        select(kind).where(kind.date == day).order_by(*_order_for(kind))
    ).scalars())


def _select_range(db: Session, kind: type, start: dt.date, end: dt.date) -> list:
    return list(db.execute(
        select(kind)
        .where(kind.date >= start, kind.date <= end)
        .order_by(*_order_for(kind))
    ).scalars())


class DayStream:
    """
    Blocking iterator over fresh DayRecords for one date.

    The first item is the current state; each later item is read
    after a committed change to that date. Changes that land while
    the consumer is busy collapse into a single re-read.
    """

    def __init__(self, store: LedgerStore, day: dt.date):
        self.store = store
        self.day = day
        self._changed = threading.Event()
        self._changed.set()
        self._closed = False
        self._subscription: Subscription = store.changes.subscribe(
            day_key(day), lambda key: self._changed.set()
        )

    def __iter__(self) -> "DayStream":
        return self

    def __next__(self) -> DayRecords:
        records = self.next(timeout=None)
        if records is None:
            raise StopIteration
        return records

    def next(self, timeout: float | None = None) -> DayRecords | None:
        """Wait for the next view. None on timeout or after close()."""
        if self._closed:
            return None
        if not self._changed.wait(timeout):
            return None
        if self._closed:
            return None
        self._changed.clear()
        return self.store.query_one_shot(self.day)

    def close(self) -> None:
        self._closed = True
        self._subscription.close()
        self._changed.set()

    def __enter__(self) -> "DayStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
