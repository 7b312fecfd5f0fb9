"""
Pydantic schemas for ledger operations.

These define the gateway contract: what comes in, what goes
out. Request bodies reject unknown fields. Enumerated fields
(direction, channel, unit) must match a known value. Numeric
fields are the exception: they are parsed permissively, and
input that is not a number becomes zero.
"""

import datetime as dt
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from expense_ledger.models.enums import Direction, PaymentChannel, UnitType
from expense_ledger.money import parse_amount


class StrictRequest(BaseModel):
    """Base for request bodies: unknown fields are an error."""
    model_config = ConfigDict(extra="forbid")


def _channel_alias(value):
    channel = PaymentChannel.from_label(value)
    return channel if channel is not None else value


def _upper(value):
    return value.strip().upper() if isinstance(value, str) else value


# --- Request Schemas ---

class EntryCreate(StrictRequest):
    """A new expense or income entry. date defaults to today."""
    date: dt.date | None = None
    source_name: str = Field(min_length=1, max_length=100)
    person_name: str = Field(default="", max_length=100)
    category: str = Field(min_length=1, max_length=100)
    item_name: str = Field(min_length=1, max_length=200)
    note: str = Field(default="", max_length=500)
    quantity: Decimal = Decimal("0")
    unit: UnitType = UnitType.NOT_APPLICABLE
    unit_price: Decimal = Decimal("0")
    total_amount: Decimal | None = None
    direction: Direction
    channel: PaymentChannel

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def parse_numbers(cls, v) -> Decimal:
        return parse_amount(v)

    @field_validator("total_amount", mode="before")
    @classmethod
    def parse_total(cls, v) -> Decimal | None:
        return None if v is None else parse_amount(v)

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v):
        return _upper(v)

    @field_validator("channel", mode="before")
    @classmethod
    def normalize_channel(cls, v):
        return _channel_alias(v)

    @field_validator("unit", mode="before")
    @classmethod
    def normalize_unit(cls, v):
        if isinstance(v, str):
            return v.strip().upper().replace(" ", "_")
        return v

    @model_validator(mode="after")
    def default_total(self) -> "EntryCreate":
        # A bare price is the entry total
        if self.total_amount is None:
            self.total_amount = self.unit_price
        return self


class TransferCreate(StrictRequest):
    """A new inter-account transfer. date defaults to today."""
    date: dt.date | None = None
    from_holder: str = Field(min_length=1, max_length=100)
    from_source: str = Field(default="", max_length=100)
    from_account_ref: str = Field(default="", max_length=50)
    to_holder: str = Field(min_length=1, max_length=100)
    to_source: str = Field(default="", max_length=100)
    to_account_ref: str = Field(default="", max_length=50)
    amount: Decimal = Decimal("0")
    direction: Direction
    channel: PaymentChannel

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount_field(cls, v) -> Decimal:
        return parse_amount(v)

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v):
        return _upper(v)

    @field_validator("channel", mode="before")
    @classmethod
    def normalize_channel(cls, v):
        return _channel_alias(v)


class SourceUpsert(StrictRequest):
    """Create or replace the opening balances of a source on a date."""
    date: dt.date | None = None
    source_name: str = Field(min_length=1, max_length=100)
    opening_cash: Decimal = Decimal("0")
    opening_cheque: Decimal = Decimal("0")
    opening_card: Decimal = Decimal("0")

    @field_validator("opening_cash", "opening_cheque", "opening_card", mode="before")
    @classmethod
    def parse_openings(cls, v) -> Decimal:
        return parse_amount(v)


# --- Response Schemas ---

class EntryResponse(BaseModel):
    id: int
    date: dt.date
    day_name: str
    source_name: str
    person_name: str
    category: str
    item_name: str
    note: str
    quantity: Decimal
    unit: UnitType
    unit_price: Decimal
    total_amount: Decimal
    direction: Direction
    channel: str | None
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class TransferResponse(BaseModel):
    id: int
    date: dt.date
    day_name: str
    from_holder: str
    from_source: str
    from_account_ref: str
    to_holder: str
    to_source: str
    to_account_ref: str
    amount: Decimal
    direction: Direction
    channel: str | None
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class SourceResponse(BaseModel):
    date: dt.date
    source_name: str
    opening_cash: Decimal
    opening_cheque: Decimal
    opening_card: Decimal

    model_config = {"from_attributes": True}


class DeleteResponse(BaseModel):
    """Deletes are idempotent: deleted=False means nothing matched."""
    deleted: bool


class BulkDeleteResponse(BaseModel):
    deleted: int


class BalancesResponse(BaseModel):
    cash: Decimal
    cheque: Decimal
    card: Decimal
    total: Decimal


class SourceBalanceResponse(BaseModel):
    source_name: str
    has_snapshot: bool
    opening: BalancesResponse
    closing: BalancesResponse


class DirectionTotalsResponse(BaseModel):
    credit: Decimal
    debit: Decimal
    net: Decimal


class DayViewResponse(BaseModel):
    """Computed view of one date."""
    date: dt.date
    sources: list[SourceBalanceResponse]
    grand_total: BalancesResponse
    transfers: DirectionTotalsResponse
    entry_count: int
    transfer_count: int


class ExpenseHistoryResponse(BaseModel):
    kind: Literal["expense"] = "expense"
    entry: EntryResponse


class TransferHistoryResponse(BaseModel):
    kind: Literal["transfer"] = "transfer"
    transfer: TransferResponse


HistoryItemResponse = Annotated[
    Union[ExpenseHistoryResponse, TransferHistoryResponse],
    Field(discriminator="kind"),
]


class HistoryResponse(BaseModel):
    start: dt.date
    end: dt.date
    items: list[HistoryItemResponse]
