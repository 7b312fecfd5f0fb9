"""
Bank source snapshot model.

One row per (date, source_name) holding the opening balance of
each payment channel. Deleting a snapshot leaves entries that
reference the source name untouched.
"""

import datetime as dt
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from expense_ledger.models.base import Base


class BankSource(Base):
    __tablename__ = "bank_sources"

    date: Mapped[dt.date] = mapped_column(Date, primary_key=True)
    source_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    opening_cash: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    opening_cheque: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    opening_card: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime, nullable=False, default=dt.datetime.now, onupdate=dt.datetime.now
    )

    @classmethod
    def implicit(cls, date: dt.date, source_name: str) -> "BankSource":
        """Zero-opening snapshot for a source name with no stored row."""
        return cls(
            date=date,
            source_name=source_name,
            opening_cash=Decimal("0"),
            opening_cheque=Decimal("0"),
            opening_card=Decimal("0"),
        )

    def __repr__(self) -> str:
        return f"<BankSource {self.source_name} {self.date}>"
