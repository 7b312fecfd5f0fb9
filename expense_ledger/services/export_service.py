"""
Export service: builds downloadable report artifacts.

Reads the snapshot for the requested screen, applies the current
currency triple, and renders it in the requested encoding. When
there is nothing to export, export() returns None and the caller
decides how to say so.
"""

import datetime as dt
import enum
from dataclasses import dataclass

from expense_ledger.reports.delimited import render_delimited
from expense_ledger.reports.document import render_document
from expense_ledger.reports.model import ReportScreen, ReportSnapshot
from expense_ledger.services.currency_service import CurrencyState
from expense_ledger.store.ledger_store import LedgerStore


class ExportType(str, enum.Enum):
    CSV = "csv"
    PDF = "pdf"


MEDIA_TYPES = {
    ExportType.CSV: "text/csv",
    ExportType.PDF: "application/pdf",
}

RENDERERS = {
    ExportType.CSV: render_delimited,
    ExportType.PDF: render_document,
}


@dataclass(frozen=True)
class ExportArtifact:
    content: bytes
    media_type: str
    filename: str


def export_filename(snapshot: ReportSnapshot, export_type: ExportType) -> str:
    if snapshot.screen == ReportScreen.DAILY:
        stem = f"Daily_{snapshot.start:%d-%m-%Y}"
    elif snapshot.screen == ReportScreen.ACCOUNTS:
        stem = f"Accounts_{snapshot.start:%d-%m-%Y}"
    else:
        stem = f"Monthly_{snapshot.start:%m-%Y}"
    return f"{stem}.{export_type.value}"


class ExportService:

    def __init__(self, store: LedgerStore):
        self.store = store

    def snapshot(
        self,
        screen: ReportScreen,
        currency: CurrencyState,
        day: dt.date,
        start: dt.date | None = None,
        end: dt.date | None = None,
    ) -> ReportSnapshot:
        if screen == ReportScreen.DAILY:
            return ReportSnapshot.daily(self.store.query_one_shot(day), currency)
        if screen == ReportScreen.ACCOUNTS:
            return ReportSnapshot.accounts(self.store.query_one_shot(day), currency)
        return ReportSnapshot.history(
            self.store.query_range(start or day, end or day), currency
        )

    def export(
        self,
        export_type: ExportType,
        screen: ReportScreen,
        currency: CurrencyState,
        day: dt.date,
        start: dt.date | None = None,
        end: dt.date | None = None,
    ) -> ExportArtifact | None:
        """Render the screen's snapshot, or return None when it is empty."""
        snapshot = self.snapshot(screen, currency, day, start, end)
        if snapshot.is_empty:
            return None
        return ExportArtifact(
            content=RENDERERS[export_type](snapshot),
            media_type=MEDIA_TYPES[export_type],
            filename=export_filename(snapshot, export_type),
        )
