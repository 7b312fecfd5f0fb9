"""
Shared enumerations for database models and request schemas.

Direction and unit are stored as database enums. The payment
channel is stored as plain text so rows written by older clients
with free-form labels still load; the balance engine maps those
labels back onto a channel when it computes.
"""

import enum


class Direction(str, enum.Enum):
    """Whether an entry adds to or takes from a channel."""
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class PaymentChannel(str, enum.Enum):
    """The sub-ledger an entry's amount affects."""
    CASH = "CASH"
    CHEQUE = "CHEQUE"
    CARD = "CARD"

    @classmethod
    def from_label(cls, value) -> "PaymentChannel | None":
        """
        Resolve an enum value or a display label ("Card/UPI").

        Returns None for anything unrecognized.
        """
        if isinstance(value, PaymentChannel):
            return value
        if not isinstance(value, str):
            return None
        return CHANNEL_LABELS.get(value.strip().upper())

    @classmethod
    def parse(cls, value) -> "PaymentChannel":
        """Resolve a stored channel, treating unknown or missing values as CASH."""
        return cls.from_label(value) or cls.CASH


CHANNEL_LABELS: dict[str, PaymentChannel] = {
    "CASH": PaymentChannel.CASH,
    "CHEQUE": PaymentChannel.CHEQUE,
    "CHECK": PaymentChannel.CHEQUE,
    "CARD": PaymentChannel.CARD,
    "CARD/UPI": PaymentChannel.CARD,
    "UPI": PaymentChannel.CARD,
}


class UnitType(str, enum.Enum):
    """Quantity unit of a ledger entry. Informational only."""
    NOT_APPLICABLE = "NOT_APPLICABLE"
    NOT_AVAILABLE = "NOT_AVAILABLE"
    PIECE = "PIECE"
    KG = "KG"
    GRAM = "GRAM"
    LITER = "LITER"
    ML = "ML"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")
