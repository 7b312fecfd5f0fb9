"""Day-scoped expense ledger with a local-network sync gateway."""

__version__ = "0.1.0"
