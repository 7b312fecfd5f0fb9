"""Pydantic schemas for the currency setting."""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from expense_ledger.schemas.ledger import StrictRequest


class CurrencyUpdate(StrictRequest):
    """Select the base/target pair. enabled toggles conversion."""
    base: str = Field(min_length=3, max_length=3)
    target: str = Field(min_length=3, max_length=3)
    enabled: bool | None = None

    @field_validator("base", "target", mode="before")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class CurrencyResponse(BaseModel):
    base: str
    target: str
    rate: Decimal
    enabled: bool
    effective_rate: Decimal
    notice: str | None = None
    available: list[str]
