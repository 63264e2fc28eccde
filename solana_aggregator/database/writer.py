"""
Persistence writer used by the ingestion worker.

Turns parser output for one slot into TransactionRecord / AccountRecord rows
and upserts them. Blocking SQLite calls run in a worker thread
(asyncio.to_thread) so the event loop keeps serving the read API. One slot
is written inside one store transaction.

Account rows are replaced on every sighting: estimated_balance is reset to 0
and related_transactions holds only the current transaction id.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Iterable

from solana_aggregator.aggregator_logging import get_logger
from solana_aggregator.core.exceptions import PersistenceError
from solana_aggregator.database.database import Database
from solana_aggregator.database.models import AccountRecord, TransactionRecord
from solana_aggregator.solana_listener.models import ParsedEntry, RawBlock

logger = get_logger(__name__)

PLACEHOLDER_BALANCE = 0


@dataclass(frozen=True)
class SlotWriteResult:
    """Row counts written for one slot."""

    transactions: int
    accounts: int


def build_transaction_record(entry: ParsedEntry, slot: int, block: RawBlock) -> TransactionRecord:
    """TransactionRecord for one parsed entry; raw transaction serialized to JSON text."""
    try:
        raw_json = json.dumps(entry.raw_transaction)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Failed to serialize transaction {entry.signature}: {e}") from e
    return TransactionRecord(
        transaction_id=entry.signature,
        timestamp=block.block_time or 0,
        block_height=slot,
        raw_transaction=raw_json,
    )


def build_account_records(entry: ParsedEntry) -> list[AccountRecord]:
    """Sender and receiver rows for a recognized transfer; empty otherwise."""
    if entry.details is None:
        return []
    return [
        AccountRecord(
            account_id=account_id,
            estimated_balance=PLACEHOLDER_BALANCE,
            related_transactions=[entry.signature],
        )
        for account_id in (entry.details.sender, entry.details.receiver)
    ]


class PersistenceWriter:
    """Async upsert facade over Database for the ingestion path."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def upsert_transaction(self, record: TransactionRecord) -> None:
        """Insert or replace by transaction_id. Raises PersistenceError."""
        await asyncio.to_thread(self._db.upsert_transaction, record)

    async def upsert_account(self, record: AccountRecord) -> None:
        """Insert or replace by account_id. Raises PersistenceError."""
        await asyncio.to_thread(self._db.upsert_account, record)

    async def persist_slot(
        self,
        slot: int,
        block: RawBlock,
        entries: Iterable[ParsedEntry],
    ) -> SlotWriteResult:
        """
        Write every parsed entry of one slot in a single store transaction.

        Per entry: one transaction row, plus sender and receiver account rows
        when the entry carries transfer details.

        Raises:
            PersistenceError: serialization or store failure; nothing of the
                slot is committed.
        """
        transactions: list[TransactionRecord] = []
        accounts: list[AccountRecord] = []
        for entry in entries:
            transactions.append(build_transaction_record(entry, slot, block))
            accounts.extend(build_account_records(entry))
        if not transactions:
            return SlotWriteResult(transactions=0, accounts=0)
        try:
            await asyncio.to_thread(self._db.write_batch, transactions, accounts)
        except PersistenceError as e:
            logger.error("slot_persist_failed", slot=slot, error=str(e))
            raise
        return SlotWriteResult(transactions=len(transactions), accounts=len(accounts))
