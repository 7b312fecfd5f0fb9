"""
Ledger entry model.

A dated expense or income record attributed to a source and a
payment channel. Entries are immutable: a correction is a delete
followed by a new insert.
"""

import datetime as dt
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from expense_ledger.models.base import Base
from expense_ledger.models.enums import Direction, UnitType


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    source_name: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )
    person_name: Mapped[str] = mapped_column(
        String(100), nullable=False, default=""
    )
    category: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    note: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    unit: Mapped[UnitType] = mapped_column(
        SAEnum(UnitType, name="unit_type_enum"),
        nullable=False,
        default=UnitType.NOT_APPLICABLE,
    )
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    direction: Mapped[Direction] = mapped_column(
        SAEnum(Direction, name="direction_enum"),
        nullable=False,
    )
    # Free text so legacy labels survive; see PaymentChannel.parse
    channel: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime, nullable=False, default=dt.datetime.now
    )

    @property
    def day_name(self) -> str:
        return self.date.strftime("%A")

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.id} {self.direction.value} "
            f"{self.total_amount} {self.source_name}>"
        )
