"""
The primary client.

The local user interface talks to the store through this asyncio
facade instead of HTTP. It shares the store (and therefore its
locks) with the gateway, so local edits and remote edits are
serialized the same way. Store calls run in worker threads; the
event loop never blocks on the database.
"""

import asyncio
import datetime as dt
import logging
from typing import AsyncIterator

from expense_ledger.models.bank_source import BankSource
from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.models.transfer_entry import TransferEntry
from expense_ledger.reports.model import ReportScreen
from expense_ledger.schemas.ledger import EntryCreate, SourceUpsert, TransferCreate
from expense_ledger.services.currency_service import CurrencyService
from expense_ledger.services.export_service import (
    ExportArtifact,
    ExportService,
    ExportType,
)
from expense_ledger.services.history import HistoryItem
from expense_ledger.services.ledger_service import DayView, LedgerService
from expense_ledger.store.ledger_store import LedgerStore, day_key

logger = logging.getLogger(__name__)


class LedgerClient:

    def __init__(self, store: LedgerStore, currency: CurrencyService):
        self.store = store
        self.currency = currency
        self.service = LedgerService(store)
        self.exports = ExportService(store)

    # --- Records ---

    async def add_entry(self, request: EntryCreate) -> LedgerEntry:
        return await asyncio.to_thread(self.service.add_entry, request)

    async def delete_entry(self, entry_id: int) -> bool:
        return await asyncio.to_thread(self.service.delete_entry, entry_id)

    async def entries(self, day: dt.date) -> list[LedgerEntry]:
        return await asyncio.to_thread(self.service.get_entries, day)

    async def add_transfer(self, request: TransferCreate) -> TransferEntry:
        return await asyncio.to_thread(self.service.add_transfer, request)

    async def delete_transfer(self, transfer_id: int) -> bool:
        return await asyncio.to_thread(self.service.delete_transfer, transfer_id)

    async def transfers(self, day: dt.date) -> list[TransferEntry]:
        return await asyncio.to_thread(self.service.get_transfers, day)

    async def upsert_source(self, request: SourceUpsert) -> BankSource:
        return await asyncio.to_thread(self.service.upsert_source, request)

    async def delete_source(self, day: dt.date, source_name: str) -> bool:
        return await asyncio.to_thread(self.service.delete_source, day, source_name)

    async def sources(self, day: dt.date) -> list[BankSource]:
        return await asyncio.to_thread(self.service.get_sources, day)

    # --- Views ---

    async def day_view(self, day: dt.date) -> DayView:
        return await asyncio.to_thread(self.service.day_view, day)

    async def history(self, start: dt.date, end: dt.date) -> list[HistoryItem]:
        return await asyncio.to_thread(
            lambda: self.service.history(start, end).to_list()
        )

    async def delete_history(self, start: dt.date, end: dt.date) -> int:
        return await asyncio.to_thread(self.service.delete_history, start, end)

    async def categories(self) -> list[str]:
        return await asyncio.to_thread(self.service.categories)

    async def suggestions(self, category: str, query: str) -> list[str]:
        return await asyncio.to_thread(self.service.suggestions, category, query)

    async def export(
        self,
        export_type: ExportType,
        screen: ReportScreen,
        day: dt.date,
        start: dt.date | None = None,
        end: dt.date | None = None,
    ) -> ExportArtifact | None:
        state = self.currency.refresh()
        return await asyncio.to_thread(
            self.exports.export, export_type, screen, state, day, start, end
        )

    async def watch_day(self, day: dt.date) -> AsyncIterator[DayView]:
        """
        Continuous day view.

        Yields the current view, then a recomputed view after every
        committed change to that date, from either client. Changes
        that arrive while the consumer is busy collapse into one.
        """
        loop = asyncio.get_running_loop()
        changed = asyncio.Event()

        def notify(key) -> None:
            loop.call_soon_threadsafe(changed.set)

        subscription = self.store.changes.subscribe(day_key(day), notify)
        try:
            yield await self.day_view(day)
            while True:
                await changed.wait()
                changed.clear()
                yield await self.day_view(day)
        finally:
            subscription.close()
            logger.debug("Stopped watching %s", day)
