"""
Balance engine: closing balances from entries and opening snapshots.

The engine enforces the balance rules:
1. closing = opening + credits - debits, per payment channel
2. Entries with an unknown or missing channel count as CASH
3. A source with no snapshot has an implicit zero opening
4. Sums are Decimal and never rounded here

Nothing is cached. Every figure is re-derived from the raw
entries each time it is asked for, so the result cannot drift
from what is stored.
"""

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Sequence

from expense_ledger.models.bank_source import BankSource
from expense_ledger.models.enums import Direction, PaymentChannel
from expense_ledger.money import ZERO, to_decimal

CHANNELS = (PaymentChannel.CASH, PaymentChannel.CHEQUE, PaymentChannel.CARD)


@dataclass(frozen=True)
class ClosingBalances:
    cash: Decimal = ZERO
    cheque: Decimal = ZERO
    card: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.cash + self.cheque + self.card

    def for_channel(self, channel: PaymentChannel) -> Decimal:
        return getattr(self, channel.value.lower())


@dataclass(frozen=True)
class GrandTotal:
    cash: Decimal = ZERO
    cheque: Decimal = ZERO
    card: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.cash + self.cheque + self.card


@dataclass(frozen=True)
class ChannelSummary:
    """Opening, movements, and closing of one channel of one source."""
    channel: PaymentChannel
    opening: Decimal
    credit: Decimal
    debit: Decimal

    @property
    def closing(self) -> Decimal:
        return self.opening + self.credit - self.debit


@dataclass(frozen=True)
class SourceSummary:
    source: BankSource
    channels: tuple[ChannelSummary, ...]
    has_snapshot: bool = True

    @property
    def source_name(self) -> str:
        return self.source.source_name

    @property
    def opening(self) -> ClosingBalances:
        return ClosingBalances(*(c.opening for c in self.channels))

    @property
    def closing(self) -> ClosingBalances:
        return ClosingBalances(*(c.closing for c in self.channels))

    def channel(self, channel: PaymentChannel) -> ChannelSummary:
        return self.channels[CHANNELS.index(channel)]


@dataclass(frozen=True)
class DirectionTotals:
    credit: Decimal = ZERO
    debit: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.credit - self.debit


@dataclass(frozen=True)
class TransferTotals:
    """Totals of a set of transfers, overall and per channel."""
    overall: DirectionTotals = field(default_factory=DirectionTotals)
    by_channel: dict = field(default_factory=dict)

    @property
    def credit(self) -> Decimal:
        return self.overall.credit

    @property
    def debit(self) -> Decimal:
        return self.overall.debit

    @property
    def net(self) -> Decimal:
        return self.overall.net


def opening_of(source: BankSource | None) -> ClosingBalances:
    """Opening balances of a snapshot; a missing snapshot opens at zero."""
    if source is None:
        return ClosingBalances()
    return ClosingBalances(
        cash=to_decimal(source.opening_cash),
        cheque=to_decimal(source.opening_cheque),
        card=to_decimal(source.opening_card),
    )


def entry_amount(entry) -> Decimal:
    return to_decimal(entry.total_amount)


def _movements(entries: Iterable, amount_of) -> dict:
    """Sum credits and debits per channel in one pass."""
    sums = {c: [ZERO, ZERO] for c in CHANNELS}
    for entry in entries:
        channel = PaymentChannel.parse(entry.channel)
        slot = 0 if entry.direction == Direction.CREDIT else 1
        sums[channel][slot] += amount_of(entry)
    return sums


def summarize_source(entries: Iterable, opening: BankSource | None) -> list[ChannelSummary]:
    """
    Per-channel opening, credits, debits for one source.

    The caller is responsible for passing only the entries of that
    source and date.
    """
    base = opening_of(opening)
    sums = _movements(entries, entry_amount)
    return [
        ChannelSummary(
            channel=c,
            opening=base.for_channel(c),
            credit=sums[c][0],
            debit=sums[c][1],
        )
        for c in CHANNELS
    ]


def compute_closing(entries: Iterable, opening: BankSource | None) -> ClosingBalances:
    """
    Closing balance per channel for one (date, source).

    Pure and order-independent: the same entries in any order
    produce the same balances.
    """
    channels = summarize_source(entries, opening)
    return ClosingBalances(*(c.closing for c in channels))


def aggregate_across_sources(
    per_source: Iterable[tuple[BankSource, ClosingBalances]],
) -> GrandTotal:
    """
    Sum each channel across sources.

    A source whose closing equals its opening (no entries)
    contributes its opening unchanged.
    """
    cash = cheque = card = ZERO
    for _source, closing in per_source:
        cash += closing.cash
        cheque += closing.cheque
        card += closing.card
    return GrandTotal(cash=cash, cheque=cheque, card=card)


def summarize_day(
    entries: Sequence,
    sources: Sequence[BankSource],
    day: dt.date | None = None,
) -> list[SourceSummary]:
    """
    One SourceSummary per source of the day.

    Snapshots come first in the order given. Source names that
    only appear on entries follow, in order of first appearance,
    with an implicit zero opening.
    """
    by_name: dict[str, list] = {}
    for entry in entries:
        by_name.setdefault(entry.source_name, []).append(entry)

    summaries = []
    known = set()
    for source in sources:
        known.add(source.source_name)
        summaries.append(SourceSummary(
            source=source,
            channels=tuple(summarize_source(by_name.get(source.source_name, ()), source)),
        ))

    for name, source_entries in by_name.items():
        if name in known:
            continue
        entry_day = day or source_entries[0].date
        implicit = BankSource.implicit(entry_day, name)
        summaries.append(SourceSummary(
            source=implicit,
            channels=tuple(summarize_source(source_entries, None)),
            has_snapshot=False,
        ))
    return summaries


def grand_total_of(summaries: Iterable[SourceSummary]) -> GrandTotal:
    return aggregate_across_sources((s.source, s.closing) for s in summaries)


def summarize_transfers(transfers: Iterable) -> TransferTotals:
    """Credit, debit, and net of transfers, overall and per channel."""
    sums = _movements(transfers, lambda t: to_decimal(t.amount))
    by_channel = {
        c: DirectionTotals(credit=sums[c][0], debit=sums[c][1])
        for c in CHANNELS
    }
    overall = DirectionTotals(
        credit=sum((t.credit for t in by_channel.values()), ZERO),
        debit=sum((t.debit for t in by_channel.values()), ZERO),
    )
    return TransferTotals(overall=overall, by_channel=by_channel)


def summarize_entries(entries: Iterable) -> DirectionTotals:
    """Credit and debit totals of ledger entries, ignoring sources."""
    credit = debit = ZERO
    for entry in entries:
        if entry.direction == Direction.CREDIT:
            credit += entry_amount(entry)
        else:
            debit += entry_amount(entry)
    return DirectionTotals(credit=credit, debit=debit)
