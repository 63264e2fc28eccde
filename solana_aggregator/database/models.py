"""
Domain models for database entities.

Transactions keyed by signature and accounts keyed by address.
Used by the backend and the read API; no ORM coupling so backends stay swappable.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class TransactionRecord:
    """Stored transaction row; transaction_id is the first signature."""

    transaction_id: str
    timestamp: int
    """Block time (Unix seconds) of the containing block; 0 when the node had none."""
    block_height: int
    """Slot the transaction was ingested from."""
    raw_transaction: str
    """JSON text of the transaction object as returned by getBlock."""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AccountRecord:
    """Stored account row."""

    account_id: str
    estimated_balance: int = 0
    related_transactions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
