"""Report rendering: one report model, two encodings."""

from expense_ledger.reports.model import (
    Report,
    ReportScreen,
    ReportSnapshot,
    build_report,
)
from expense_ledger.reports.delimited import render_delimited
from expense_ledger.reports.document import render_document, layout_document

__all__ = [
    "Report",
    "ReportScreen",
    "ReportSnapshot",
    "build_report",
    "render_delimited",
    "render_document",
    "layout_document",
]
