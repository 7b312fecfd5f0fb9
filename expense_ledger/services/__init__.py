"""Business logic services."""

from expense_ledger.services.ledger_service import LedgerService
from expense_ledger.services.currency_service import CurrencyService

__all__ = ["LedgerService", "CurrencyService"]
