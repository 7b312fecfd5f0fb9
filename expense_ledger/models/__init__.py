"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from expense_ledger.models.base import Base
from expense_ledger.models.enums import Direction, PaymentChannel, UnitType
from expense_ledger.models.bank_source import BankSource
from expense_ledger.models.ledger_entry import LedgerEntry
from expense_ledger.models.transfer_entry import TransferEntry

__all__ = [
    "Base",
    "Direction",
    "PaymentChannel",
    "UnitType",
    "BankSource",
    "LedgerEntry",
    "TransferEntry",
]
