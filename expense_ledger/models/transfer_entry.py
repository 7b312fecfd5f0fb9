"""
Transfer entry model.

An inter-account money movement. Transfers are their own ledger:
they appear in history feeds and carry their own totals, but they
never change a bank source's closing balance.
"""

import datetime as dt
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from expense_ledger.models.base import Base
from expense_ledger.models.enums import Direction


class TransferEntry(Base):
    __tablename__ = "transfer_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    from_holder: Mapped[str] = mapped_column(String(100), nullable=False)
    from_source: Mapped[str] = mapped_column(
        String(100), nullable=False, default=""
    )
    from_account_ref: Mapped[str] = mapped_column(
        String(50), nullable=False, default=""
    )
    to_holder: Mapped[str] = mapped_column(String(100), nullable=False)
    to_source: Mapped[str] = mapped_column(
        String(100), nullable=False, default=""
    )
    to_account_ref: Mapped[str] = mapped_column(
        String(50), nullable=False, default=""
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    direction: Mapped[Direction] = mapped_column(
        SAEnum(Direction, name="direction_enum"),
        nullable=False,
    )
    channel: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime, nullable=False, default=dt.datetime.now
    )

    @property
    def day_name(self) -> str:
        return self.date.strftime("%A")

    def __repr__(self) -> str:
        return (
            f"<TransferEntry {self.id} {self.direction.value} "
            f"{self.amount} {self.from_holder}->{self.to_holder}>"
        )
