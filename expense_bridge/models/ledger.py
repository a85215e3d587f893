"""
Ledger Models

What the dispatcher hands to the ledger collaborator and what it gets
back. The wire format lives with the concrete client, not here.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WithdrawalRequest(BaseModel):
    """
    One expense to record: money leaves the source account and lands
    in the destination expense account under `category`.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    source_account_id: int = Field(..., ge=1)
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    destination_name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    notes: Optional[str] = None
    tags: tuple[str, ...] = ()
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CreatedTransaction(BaseModel):
    """Result of a successful create-transaction call."""
    model_config = ConfigDict(frozen=True)

    transaction_id: Optional[str] = Field(
        default=None,
        description="Ledger-side id, when the ledger returns one"
    )
    category: str
    amount: Decimal
