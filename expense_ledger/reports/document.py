"""
Paginated document (PDF) encoding of a report.

Drawing goes through PageLayout, which keeps a vertical cursor:
1. The cursor starts at the top margin of each page
2. Before a line is drawn, if it would pass the bottom margin,
   the page is closed and a new one started at the top margin
3. Text wider than the allowed width wraps at word boundaries

Headers are not repeated after a page break.

The layout is recorded as drawing operations first and encoded
with reportlab afterwards, so the text of a rendered document
can be inspected without parsing PDF bytes.
"""

import io
from dataclasses import dataclass

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

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

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN_LEFT = 40.0
MARGIN_RIGHT = 550.0
TOP_MARGIN = 50.0
BOTTOM_MARGIN = 780.0
LINE_GAP = 5.0
AMOUNT_GAP = 15.0

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

CREDIT_COLOR = colors.darkgreen
DEBIT_COLOR = colors.red
SOURCE_COLOR = colors.darkblue


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str
    size: float
    color: colors.Color
    align: str = "left"


@dataclass(frozen=True)
class RuleOp:
    x1: float
    x2: float
    y: float
    color: colors.Color
    width: float


class PageLayout:
    """Cursor-driven page builder. y grows downwards from the page top."""

    def __init__(
        self,
        left: float = MARGIN_LEFT,
        right: float = MARGIN_RIGHT,
        top: float = TOP_MARGIN,
        bottom: float = BOTTOM_MARGIN,
    ):
        self.left = left
        self.right = right
        self.top = top
        self.bottom = bottom
        self.pages: list[list] = [[]]
        self.y = top
        self.last_baseline = top

    @property
    def content_width(self) -> float:
        return self.right - self.left

    @staticmethod
    def measure(text: str, size: float, bold: bool = False) -> float:
        return stringWidth(text, FONT_BOLD if bold else FONT, size)

    def wrap(self, text: str, max_width: float, size: float, bold: bool = False) -> list[str]:
        """
        Greedy word wrap.

        Words join the current line while it measures under
        max_width; the word that overflows starts the next line.
        A single word wider than max_width gets a line to itself.
        """
        lines = []
        line = ""
        for word in text.split(" "):
            candidate = word if not line else f"{line} {word}"
            if not line or self.measure(candidate, size, bold) < max_width:
                line = candidate
            else:
                lines.append(line)
                line = word
        if line:
            lines.append(line)
        return lines

    def new_page(self) -> None:
        self.pages.append([])
        self.y = self.top

    def ensure_room(self, height: float) -> None:
        if self.y + height > self.bottom and self.y > self.top:
            self.new_page()

    def space(self, height: float) -> None:
        self.y += height

    def text(
        self,
        text: str,
        size: float = 11,
        bold: bool = False,
        color=colors.black,
        indent: float = 0,
        max_width: float | None = None,
    ) -> None:
        width = max_width if max_width is not None else self.content_width - indent
        font = FONT_BOLD if bold else FONT
        for line in self.wrap(text, width, size, bold):
            self.ensure_room(size + LINE_GAP)
            self.pages[-1].append(
                TextOp(self.left + indent, self.y, line, font, size, color)
            )
            self.last_baseline = self.y
            self.y += size + LINE_GAP

    def text_with_amount(
        self,
        text: str,
        amount: str,
        size: float = 10,
        color=colors.black,
        indent: float = 0,
    ) -> None:
        """
        Text wrapped to stop short of a right-aligned amount, which
        sits on the baseline of the last wrapped line.
        """
        width = self.content_width - indent - self.measure(amount, size) - AMOUNT_GAP
        self.text(text, size=size, indent=indent, max_width=width)
        self.right_text(amount, size=size, color=color)

    def right_text(self, text: str, size: float = 10, bold: bool = False, color=colors.black) -> None:
        """Right-aligned text on the baseline of the last line drawn."""
        font = FONT_BOLD if bold else FONT
        self.pages[-1].append(
            TextOp(self.right, self.last_baseline, text, font, size, color, align="right")
        )

    def rule(self, color=colors.black, width: float = 1.0) -> None:
        self.ensure_room(15)
        self.pages[-1].append(RuleOp(self.left, self.right, self.y, color, width))
        self.y += 15

    def texts(self) -> list[str]:
        """Every drawn string, page by page, in drawing order."""
        return [op.text for page in self.pages for op in page if isinstance(op, TextOp)]

    def to_pdf(self, title: str = "") -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(PAGE_WIDTH, PAGE_HEIGHT), invariant=1)
        if title:
            pdf.setTitle(title)
        for page in self.pages:
            for op in page:
                if isinstance(op, TextOp):
                    pdf.setFillColor(op.color)
                    pdf.setFont(op.font, op.size)
                    if op.align == "right":
                        pdf.drawRightString(op.x, PAGE_HEIGHT - op.y, op.text)
                    else:
                        pdf.drawString(op.x, PAGE_HEIGHT - op.y, op.text)
                else:
                    pdf.setStrokeColor(op.color)
                    pdf.setLineWidth(op.width)
                    pdf.line(op.x1, PAGE_HEIGHT - op.y, op.x2, PAGE_HEIGHT - op.y)
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()


def _sign(is_credit: bool) -> str:
    return "(+)" if is_credit else "(-)"


def _amount_label(line, base: str, target: str) -> str:
    return (
        f"{base} {format_money(line.amount)}  /  "
        f"{target} {format_money(line.converted)} {_sign(line.is_credit)}"
    )


def _header(layout: PageLayout, report: Report) -> None:
    screen = report.snapshot.screen
    titles = {
        ReportScreen.DAILY: "Daily Report",
        ReportScreen.ACCOUNTS: "Account Tx",
        ReportScreen.HISTORY: "Monthly Report",
    }
    layout.text(f"{titles[screen]} ({report.base})", size=16, bold=True)
    layout.space(10)
    if screen == ReportScreen.ACCOUNTS:
        layout.text(f"Date: {report.period_label}", size=12)
    else:
        layout.text(f"Name: {report.person_name} | Date: {report.period_label}", size=12)
    layout.text(f"Rate: {report.rate_label}", size=12, color=colors.darkgrey)
    layout.space(20)


def _grand_total(layout: PageLayout, report: Report) -> None:
    layout.rule()
    layout.text(f"GRAND TOTAL ({report.base}): {format_money(report.grand_total)}", size=13, bold=True)
    layout.text(
        f"GRAND TOTAL ({report.target}): {format_money(report.grand_total_converted)}",
        size=13,
        bold=True,
    )


def _daily(layout: PageLayout, report: Report) -> None:
    base, target = report.base, report.target
    for block in report.source_blocks:
        summary = block.summary
        layout.rule(color=SOURCE_COLOR, width=2)
        heading = f"BANK: {block.name}"
        if not summary.has_snapshot:
            heading += " (no opening balance recorded)"
        layout.text(heading, size=14, bold=True, color=SOURCE_COLOR)
        opening = summary.opening
        layout.text(
            f"Op Cash: {format_money(opening.cash)} | "
            f"Op Chq: {format_money(opening.cheque)} | "
            f"Op Card: {format_money(opening.card)}"
        )
        layout.space(15)

        for category in block.categories:
            layout.text(category.name, size=13, bold=True, color=colors.blue)
            for line in category.lines:
                info = f" ({line.note})" if line.note.strip() else ""
                layout.text_with_amount(
                    f"{line.item_name}{info} | {format_quantity(line.quantity)} {line.unit} | [{line.channel}]",
                    _amount_label(line, base, target),
                    color=CREDIT_COLOR if line.is_credit else DEBIT_COLOR,
                    indent=10,
                )
                layout.space(5)
            totals = category.totals
            layout.text(
                f"Subtotal {category.name}: Credit {format_money(totals.credit)} | "
                f"Debit {format_money(totals.debit)} | Net {format_money(totals.net)} "
                f"({target} {format_money(category.net_converted)})",
                size=10,
                bold=True,
                indent=10,
            )
            layout.space(10)

        layout.space(5)
        layout.rule()
        layout.text(f"CLOSING SUMMARY ({block.name}):", size=12, bold=True)
        for channel in CHANNELS:
            detail = summary.channel(channel)
            layout.text(
                f"{channel.value.title()}: {format_money(detail.opening)} "
                f"+ {format_money(detail.credit)} - {format_money(detail.debit)} "
                f"= {format_money(detail.closing)}"
            )
        layout.text(f"Total: {format_money(summary.closing.total)}", bold=True)
        layout.space(30)

    totals = report.channel_totals
    layout.text(
        f"All sources: Cash {format_money(totals.cash)} | "
        f"Cheque {format_money(totals.cheque)} | Card {format_money(totals.card)}"
    )
    _grand_total(layout, report)


def _transfers(layout: PageLayout, report: Report, with_date: bool) -> None:
    base, target = report.base, report.target
    for line in report.transfer_lines:
        prefix = f"{format_date(line.date)}  " if with_date else ""
        layout.text(
            f"{prefix}FROM: {line.from_holder} | {line.from_source} | {line.from_account_ref}",
            size=10,
            color=colors.darkgrey,
        )
        layout.text(
            f"TO:   {line.to_holder} | {line.to_source} | {line.to_account_ref}",
            size=10,
            color=colors.darkgrey,
        )
        layout.text(
            f"{'+' if line.is_credit else '-'} {base} {format_money(line.amount)}  =>  "
            f"{target} {format_money(line.converted)}  [{line.channel}]",
            size=10,
            bold=True,
            color=CREDIT_COLOR if line.is_credit else colors.black,
        )
        layout.space(5)
        layout.rule()
    totals = report.transfer_totals
    layout.text(
        f"Transfers: Credit {format_money(totals.credit)} | "
        f"Debit {format_money(totals.debit)} | Net {format_money(totals.net)}",
        bold=True,
    )


def _accounts(layout: PageLayout, report: Report) -> None:
    _transfers(layout, report, with_date=False)
    layout.space(10)
    _grand_total(layout, report)


def _history(layout: PageLayout, report: Report) -> None:
    base, target = report.base, report.target
    layout.text("EXPENSES", size=14, bold=True, color=SOURCE_COLOR)
    for line in report.entry_lines:
        info = f" ({line.note})" if line.note.strip() else ""
        layout.text_with_amount(
            f"{format_date(line.date)} | {line.source_name} | {line.category} | "
            f"{line.item_name}{info} | [{line.channel}]",
            _amount_label(line, base, target),
            color=CREDIT_COLOR if line.is_credit else DEBIT_COLOR,
        )
        layout.space(5)
    totals = report.entry_totals
    layout.text(
        f"Expenses: Credit {format_money(totals.credit)} | "
        f"Debit {format_money(totals.debit)} | Net {format_money(totals.net)}",
        bold=True,
    )
    layout.space(20)
    layout.text("ACCOUNT TRANSACTIONS", size=14, bold=True, color=SOURCE_COLOR)
    _transfers(layout, report, with_date=True)
    layout.space(10)
    _grand_total(layout, report)


SECTIONS = {
    ReportScreen.DAILY: _daily,
    ReportScreen.ACCOUNTS: _accounts,
    ReportScreen.HISTORY: _history,
}


def layout_report(report: Report, layout: PageLayout | None = None) -> PageLayout:
    layout = layout or PageLayout()
    _header(layout, report)
    SECTIONS[report.snapshot.screen](layout, report)
    return layout


def layout_document(snapshot: ReportSnapshot) -> PageLayout:
    return layout_report(build_report(snapshot))


def render_document(snapshot: ReportSnapshot) -> bytes:
    """PDF bytes for a snapshot. Never fails on an empty snapshot."""
    report = build_report(snapshot)
    return layout_report(report).to_pdf(title=report.title)
