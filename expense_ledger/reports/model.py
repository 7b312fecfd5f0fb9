"""
Report model shared by every output encoding.

A ReportSnapshot is the raw input (records plus the currency
triple). build_report() turns it into a Report once; the CSV and
PDF renderers only format what the Report already holds, so both
encodings print the same figures by construction.

Converted amounts are amount * rate, unrounded. Rounding to cents
happens in money.format_money at render time.
"""

import datetime as dt
import enum
from dataclasses import dataclass, field
from decimal import Decimal

from expense_ledger.models.enums import Direction, PaymentChannel
from expense_ledger.money import ZERO, convert, to_decimal
from expense_ledger.services import balance_engine
from expense_ledger.services.balance_engine import (
    DirectionTotals,
    GrandTotal,
    SourceSummary,
)
from expense_ledger.services.currency_service import CurrencyState
from expense_ledger.store.ledger_store import DayRecords, RangeRecords


class ReportScreen(str, enum.Enum):
    DAILY = "daily"
    ACCOUNTS = "acc"
    HISTORY = "hist"


CHANNEL_LABELS = {
    PaymentChannel.CASH: "Cash",
    PaymentChannel.CHEQUE: "Cheque",
    PaymentChannel.CARD: "Card",
}


@dataclass(frozen=True)
class ReportSnapshot:
    screen: ReportScreen
    start: dt.date
    end: dt.date
    currency: CurrencyState
    entries: tuple = ()
    sources: tuple = ()
    transfers: tuple = ()

    @classmethod
    def daily(cls, records: DayRecords, currency: CurrencyState) -> "ReportSnapshot":
        return cls(
            screen=ReportScreen.DAILY,
            start=records.date,
            end=records.date,
            currency=currency,
            entries=tuple(records.entries),
            sources=tuple(records.sources),
        )

    @classmethod
    def accounts(cls, records: DayRecords, currency: CurrencyState) -> "ReportSnapshot":
        return cls(
            screen=ReportScreen.ACCOUNTS,
            start=records.date,
            end=records.date,
            currency=currency,
            transfers=tuple(records.transfers),
        )

    @classmethod
    def history(cls, records: RangeRecords, currency: CurrencyState) -> "ReportSnapshot":
        return cls(
            screen=ReportScreen.HISTORY,
            start=records.start,
            end=records.end,
            currency=currency,
            entries=tuple(records.entries),
            transfers=tuple(records.transfers),
        )

    @property
    def rate(self) -> Decimal:
        return self.currency.effective_rate

    @property
    def is_empty(self) -> bool:
        """Nothing worth exporting for this screen."""
        if self.screen == ReportScreen.DAILY:
            return not self.entries and not self.sources
        if self.screen == ReportScreen.ACCOUNTS:
            return not self.transfers
        return not self.entries and not self.transfers


@dataclass(frozen=True)
class EntryLine:
    date: dt.date
    source_name: str
    category: str
    item_name: str
    note: str
    quantity: Decimal
    unit: str
    amount: Decimal
    converted: Decimal
    direction: Direction
    channel: str

    @property
    def is_credit(self) -> bool:
        return self.direction == Direction.CREDIT


@dataclass(frozen=True)
class TransferLine:
    date: dt.date
    from_holder: str
    from_source: str
    from_account_ref: str
    to_holder: str
    to_source: str
    to_account_ref: str
    amount: Decimal
    converted: Decimal
    direction: Direction
    channel: str

    @property
    def is_credit(self) -> bool:
        return self.direction == Direction.CREDIT


@dataclass(frozen=True)
class CategoryBlock:
    name: str
    lines: list[EntryLine]
    totals: DirectionTotals
    net_converted: Decimal


@dataclass(frozen=True)
class SourceBlock:
    summary: SourceSummary
    categories: list[CategoryBlock]

    @property
    def name(self) -> str:
        return self.summary.source_name


@dataclass(frozen=True)
class Report:
    snapshot: ReportSnapshot
    title: str
    person_name: str
    source_blocks: list[SourceBlock] = field(default_factory=list)
    entry_lines: list[EntryLine] = field(default_factory=list)
    transfer_lines: list[TransferLine] = field(default_factory=list)
    channel_totals: GrandTotal = field(default_factory=GrandTotal)
    entry_totals: DirectionTotals = field(default_factory=DirectionTotals)
    transfer_totals: DirectionTotals = field(default_factory=DirectionTotals)
    grand_total: Decimal = ZERO
    grand_total_converted: Decimal = ZERO

    @property
    def base(self) -> str:
        return self.snapshot.currency.base

    @property
    def target(self) -> str:
        return self.snapshot.currency.target

    @property
    def rate(self) -> Decimal:
        return self.snapshot.rate

    @property
    def rate_label(self) -> str:
        return f"1 {self.base} = {self.rate.normalize():f} {self.target}"

    @property
    def period_label(self) -> str:
        start, end = self.snapshot.start, self.snapshot.end
        if start == end:
            return format_date(start)
        return f"{format_date(start)} - {format_date(end)}"


def format_date(day: dt.date) -> str:
    return day.strftime("%d/%m/%Y")


def format_quantity(quantity) -> str:
    text = f"{to_decimal(quantity).normalize():f}"
    return "0" if text in ("-0", "") else text


def channel_label(raw: str | None) -> str:
    return CHANNEL_LABELS[PaymentChannel.parse(raw)]


def person_name_of(entries) -> str:
    for entry in entries:
        if entry.person_name and entry.person_name.strip():
            return entry.person_name.strip()
    return "Unknown"


def _entry_line(entry, rate: Decimal) -> EntryLine:
    amount = balance_engine.entry_amount(entry)
    unit = entry.unit.label if hasattr(entry.unit, "label") else str(entry.unit)
    return EntryLine(
        date=entry.date,
        source_name=entry.source_name,
        category=entry.category,
        item_name=entry.item_name,
        note=entry.note or "",
        quantity=to_decimal(entry.quantity),
        unit=unit,
        amount=amount,
        converted=convert(amount, rate),
        direction=Direction(entry.direction),
        channel=channel_label(entry.channel),
    )


def _transfer_line(transfer, rate: Decimal) -> TransferLine:
    amount = to_decimal(transfer.amount)
    return TransferLine(
        date=transfer.date,
        from_holder=transfer.from_holder,
        from_source=transfer.from_source,
        from_account_ref=transfer.from_account_ref,
        to_holder=transfer.to_holder,
        to_source=transfer.to_source,
        to_account_ref=transfer.to_account_ref,
        amount=amount,
        converted=convert(amount, rate),
        direction=Direction(transfer.direction),
        channel=channel_label(transfer.channel),
    )


def _category_blocks(entries, rate: Decimal) -> list[CategoryBlock]:
    """Group entries by category, keeping first-appearance order."""
    grouped: dict[str, list] = {}
    for entry in entries:
        grouped.setdefault(entry.category, []).append(entry)

    blocks = []
    for name, members in grouped.items():
        totals = balance_engine.summarize_entries(members)
        blocks.append(CategoryBlock(
            name=name,
            lines=[_entry_line(e, rate) for e in members],
            totals=totals,
            net_converted=convert(totals.net, rate),
        ))
    return blocks


def _build_daily(snapshot: ReportSnapshot) -> Report:
    rate = snapshot.rate
    summaries = balance_engine.summarize_day(
        snapshot.entries, list(snapshot.sources), snapshot.start
    )
    blocks = []
    for summary in summaries:
        source_entries = [
            e for e in snapshot.entries if e.source_name == summary.source_name
        ]
        blocks.append(SourceBlock(
            summary=summary,
            categories=_category_blocks(source_entries, rate),
        ))

    channel_totals = balance_engine.grand_total_of(summaries)
    return Report(
        snapshot=snapshot,
        title="Daily Expense Report",
        person_name=person_name_of(snapshot.entries),
        source_blocks=blocks,
        channel_totals=channel_totals,
        entry_totals=balance_engine.summarize_entries(snapshot.entries),
        grand_total=channel_totals.total,
        grand_total_converted=convert(channel_totals.total, rate),
    )


def _build_accounts(snapshot: ReportSnapshot) -> Report:
    rate = snapshot.rate
    totals = balance_engine.summarize_transfers(snapshot.transfers).overall
    return Report(
        snapshot=snapshot,
        title="Account Transactions",
        person_name="",
        transfer_lines=[_transfer_line(t, rate) for t in snapshot.transfers],
        transfer_totals=totals,
        grand_total=totals.net,
        grand_total_converted=convert(totals.net, rate),
    )


def _build_history(snapshot: ReportSnapshot) -> Report:
    rate = snapshot.rate
    entry_totals = balance_engine.summarize_entries(snapshot.entries)
    transfer_totals = balance_engine.summarize_transfers(snapshot.transfers).overall
    net = entry_totals.net + transfer_totals.net
    return Report(
        snapshot=snapshot,
        title="Monthly Report",
        person_name=person_name_of(snapshot.entries),
        entry_lines=[_entry_line(e, rate) for e in snapshot.entries],
        transfer_lines=[_transfer_line(t, rate) for t in snapshot.transfers],
        entry_totals=entry_totals,
        transfer_totals=transfer_totals,
        grand_total=net,
        grand_total_converted=convert(net, rate),
    )


BUILDERS = {
    ReportScreen.DAILY: _build_daily,
    ReportScreen.ACCOUNTS: _build_accounts,
    ReportScreen.HISTORY: _build_history,
}


def build_report(snapshot: ReportSnapshot) -> Report:
    return BUILDERS[snapshot.screen](snapshot)

