"""
In-Memory Ledger

A LedgerInterface that keeps every request in a list. Used by the tests
and handy for running the bot against a real room without touching a
real ledger.
"""

from typing import Iterable, Optional

from expense_bridge.models.ledger import CreatedTransaction, WithdrawalRequest
from expense_bridge.services.ledger.interface import LedgerError, LedgerInterface


class InMemoryLedger(LedgerInterface):
    """
    Records withdrawals instead of sending them anywhere.

    Set `failure` (or call fail_with) to make every call raise that error.
    """

    def __init__(
        self,
        categories: Optional[Iterable[str]] = None,
        failure: Optional[LedgerError] = None,
    ):
        self.categories = list(categories or [])
        self.failure = failure
        self.requests: list[WithdrawalRequest] = []
        self._next_id = 1

    def fail_with(self, error: Optional[LedgerError]) -> None:
        self.failure = error

    async def create_withdrawal(self, request: WithdrawalRequest) -> CreatedTransaction:
        if self.failure is not None:
            raise self.failure

        self.requests.append(request)
        transaction_id = str(self._next_id)
        self._next_id += 1
        return CreatedTransaction(
            transaction_id=transaction_id,
            category=request.category,
            amount=request.amount,
        )

    async def list_categories(self) -> list[str]:
        if self.failure is not None:
            raise self.failure
        return list(self.categories)
