"""
Delimited-text (CSV) encoding of a report.

Layout of a daily report:
    header lines (title, person, date, rate)
    per source: opening balances, one row per entry grouped by
    category, a subtotal row per category, a closing summary
    per channel
    a grand total row

Free-text fields have separators replaced by spaces, so each
row always has the same number of columns.
"""

import csv
import io

from expense_ledger.money import format_money
from expense_ledger.reports.model import (
    Report,
    ReportScreen,
    ReportSnapshot,
    build_report,
    format_date,
    format_quantity,
)
from expense_ledger.services.balance_engine import CHANNELS

SEPARATOR = ","
SEPARATOR_LINE = "------------------------------------------------"


def clean(text) -> str:
    """Make a free-text value safe to place in one field."""
    return (
        str(text)
        .replace(SEPARATOR, " ")
        .replace("\r", " ")
        .replace("\n", " ")
    )


class _Sheet:
    """Row collector over csv.writer."""

    def __init__(self):
        self.buffer = io.StringIO()
        self.writer = csv.writer(self.buffer, lineterminator="\n")

    def row(self, *fields) -> None:
        self.writer.writerow([clean(f) for f in fields])

    def blank(self) -> None:
        self.buffer.write("\n")

    def getvalue(self) -> bytes:
        return self.buffer.getvalue().encode("utf-8")


def _header(sheet: _Sheet, report: Report) -> None:
    sheet.row(report.title)
    if report.snapshot.screen != ReportScreen.ACCOUNTS:
        sheet.row("Person Name", report.person_name)
    sheet.row("Date", report.period_label)
    sheet.row("Rate", report.rate_label)
    sheet.blank()


def _grand_total(sheet: _Sheet, report: Report) -> None:
    sheet.row("", report.base, report.target)
    sheet.row(
        "GRAND TOTAL",
        format_money(report.grand_total),
        format_money(report.grand_total_converted),
    )


def _daily(sheet: _Sheet, report: Report) -> None:
    base, target = report.base, report.target
    for block in report.source_blocks:
        summary = block.summary
        sheet.row("BANK SOURCE", block.name)
        opening = summary.opening
        sheet.row("Opening Cash", format_money(opening.cash))
        sheet.row("Opening Cheque", format_money(opening.cheque))
        sheet.row("Opening Card", format_money(opening.card))
        sheet.row(
            "Category", "Item Name", "Additional Info", "Qty", "Unit",
            f"Price ({base})", f"Price ({target})", "Type", "Mode",
        )

        for category in block.categories:
            for line in category.lines:
                sheet.row(
                    line.category,
                    line.item_name,
                    line.note,
                    format_quantity(line.quantity),
                    line.unit,
                    format_money(line.amount),
                    format_money(line.converted),
                    line.direction.value,
                    line.channel,
                )
            sheet.row(
                f"Subtotal ({category.name})",
                "",
                f"Credit {format_money(category.totals.credit)} "
                f"Debit {format_money(category.totals.debit)}",
                "",
                "",
                format_money(category.totals.net),
                format_money(category.net_converted),
                "NET",
                "",
            )

        sheet.row(f"CLOSING SUMMARY ({block.name})")
        sheet.row("Channel", "Opening", "Credit", "Debit", "Closing")
        for channel in CHANNELS:
            detail = summary.channel(channel)
            sheet.row(
                channel.value.title(),
                format_money(detail.opening),
                format_money(detail.credit),
                format_money(detail.debit),
                format_money(detail.closing),
            )
        sheet.row("Total", "", "", "", format_money(summary.closing.total))
        sheet.blank()
        sheet.row(SEPARATOR_LINE)
        sheet.blank()

    totals = report.channel_totals
    sheet.row(
        "CHANNEL TOTALS",
        f"Cash {format_money(totals.cash)}",
        f"Cheque {format_money(totals.cheque)}",
        f"Card {format_money(totals.card)}",
    )
    _grand_total(sheet, report)


def _transfer_rows(sheet: _Sheet, report: Report, with_date: bool) -> None:
    base, target = report.base, report.target
    columns = [
        "From Holder", "From Bank", "From Acc", "To Beneficiary", "To Bank",
        "To Acc", f"Amt ({base})", f"Amt ({target})", "Type", "Mode",
    ]
    sheet.row(*(["Date"] + columns if with_date else columns))
    for line in report.transfer_lines:
        fields = [
            line.from_holder,
            line.from_source,
            # Leading quote keeps spreadsheets from reading account numbers as numbers
            f"'{line.from_account_ref}" if line.from_account_ref else "",
            line.to_holder,
            line.to_source,
            f"'{line.to_account_ref}" if line.to_account_ref else "",
            format_money(line.amount),
            format_money(line.converted),
            line.direction.value,
            line.channel,
        ]
        sheet.row(*([format_date(line.date)] + fields if with_date else fields))
    totals = report.transfer_totals
    sheet.row("Total Credit", format_money(totals.credit))
    sheet.row("Total Debit", format_money(totals.debit))
    sheet.row("Net", format_money(totals.net))


def _accounts(sheet: _Sheet, report: Report) -> None:
    _transfer_rows(sheet, report, with_date=False)
    sheet.blank()
    _grand_total(sheet, report)


def _history(sheet: _Sheet, report: Report) -> None:
    base, target = report.base, report.target
    sheet.row("EXPENSES")
    sheet.row(
        "Date", "Day", "Source", "Category", "Item Name", "Additional Info",
        f"Amount ({base})", f"Amount ({target})", "Type", "Mode",
    )
    for line in report.entry_lines:
        sheet.row(
            format_date(line.date),
            line.date.strftime("%A"),
            line.source_name,
            line.category,
            line.item_name,
            line.note,
            format_money(line.amount),
            format_money(line.converted),
            line.direction.value,
            line.channel,
        )
    totals = report.entry_totals
    sheet.row("Total Credit", format_money(totals.credit))
    sheet.row("Total Debit", format_money(totals.debit))
    sheet.row("Net", format_money(totals.net))
    sheet.blank()

    sheet.row("ACCOUNT TRANSACTIONS")
    _transfer_rows(sheet, report, with_date=True)
    sheet.blank()
    _grand_total(sheet, report)


SECTIONS = {
    ReportScreen.DAILY: _daily,
    ReportScreen.ACCOUNTS: _accounts,
    ReportScreen.HISTORY: _history,
}


def render_report_delimited(report: Report) -> bytes:
    sheet = _Sheet()
    _header(sheet, report)
    SECTIONS[report.snapshot.screen](sheet, report)
    return sheet.getvalue()


def render_delimited(snapshot: ReportSnapshot) -> bytes:
    """CSV bytes (UTF-8) for a snapshot. Never fails on an empty snapshot."""
    return render_report_delimited(build_report(snapshot))
