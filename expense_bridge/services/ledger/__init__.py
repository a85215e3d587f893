"""
Ledger Services Package

Provides the abstract ledger interface, the Firefly III implementation
and an in-memory implementation for tests.
"""

from expense_bridge.services.ledger.interface import (
    LedgerConnectionError,
    LedgerError,
    LedgerInterface,
    LedgerResponseError,
)
from expense_bridge.services.ledger.firefly import FireflyLedgerClient
from expense_bridge.services.ledger.memory import InMemoryLedger

__all__ = [
    # Interface
    "LedgerInterface",
    # Exceptions
    "LedgerConnectionError",
    "LedgerError",
    "LedgerResponseError",
    # Implementations
    "FireflyLedgerClient",
    "InMemoryLedger",
]
