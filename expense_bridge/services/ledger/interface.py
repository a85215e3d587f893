"""
Abstract Ledger Interface

The dispatcher only talks to the ledger through this interface, so it
can be exercised against the in-memory ledger in tests and against
Firefly III in production.

The interface is intentionally small: record an expense, list the
categories. Authentication and the wire format belong to the concrete
client.
"""

from abc import ABC, abstractmethod
from typing import Optional

from expense_bridge.models.ledger import CreatedTransaction, WithdrawalRequest


class LedgerInterface(ABC):
    """
    Abstract interface for ledger operations.

    Any ledger implementation must implement these methods.
    """

    @abstractmethod
    async def create_withdrawal(self, request: WithdrawalRequest) -> CreatedTransaction:
        """
        Record one withdrawal (expense) transaction.

        Args:
            request: The withdrawal to create

        Returns:
            The created transaction

        Raises:
            LedgerConnectionError: If the ledger cannot be reached or times out
            LedgerResponseError: If the ledger rejects the request or
                                 answers with something unreadable
        """
        pass

    @abstractmethod
    async def list_categories(self) -> list[str]:
        """
        List the names of all categories known to the ledger.

        Raises:
            LedgerError: If the ledger call fails
        """
        pass


class LedgerError(Exception):
    """
    Base exception for ledger operations.

    `user_message` is a short sentence safe to show in the chat room:
    no status codes, no server internals.
    """

    user_message = "The ledger call failed."
    status_code: Optional[int] = None


class LedgerConnectionError(LedgerError):
    """Could not reach the ledger, or it did not answer in time."""

    def __init__(self, message: str, timed_out: bool = False):
        self.timed_out = timed_out
        super().__init__(message)

    @property
    def user_message(self) -> str:
        if self.timed_out:
            return "The ledger did not respond in time."
        return "The ledger could not be reached."


class LedgerResponseError(LedgerError):
    """The ledger answered with a non-2xx status or an unreadable body."""

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: Optional[str] = None,
    ):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)

    @property
    def user_message(self) -> str:
        if self.status_code in (401, 403):
            return "The ledger refused the bot's credentials."
        if self.status_code >= 500:
            return "The ledger ran into an internal problem."
        if 200 <= self.status_code < 300:
            return "The ledger sent an unexpected response."
        if self.detail:
            return f"The ledger rejected it: {self.detail}"
        return "The ledger rejected it."
