"""
Database abstraction layer for ingested transactions and accounts.

SQLite backend; designed so the backend can be swapped via a different
DatabaseBackend implementation. All access goes through the abstract
interface. Connections are opened per operation (WAL mode), so the read
API and the ingestion writer never share a connection.
"""

from __future__ import annotations

import json
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from solana_aggregator.aggregator_logging import get_logger
from solana_aggregator.core.exceptions import PersistenceError
from solana_aggregator.database.models import AccountRecord, TransactionRecord

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Schema (SQLite)
# -----------------------------------------------------------------------------

SCHEMA_TRANSACTIONS = """
CREATE TABLE IF NOT EXISTS transactions (
    transaction_id TEXT PRIMARY KEY,
    timestamp INTEGER,
    block_height INTEGER,
    raw_transaction TEXT
);
"""

SCHEMA_ACCOUNTS = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id TEXT PRIMARY KEY,
    estimated_balance INTEGER,
    related_transactions TEXT
);
"""

_UPSERT_TRANSACTION = """
INSERT OR REPLACE INTO transactions (transaction_id, timestamp, block_height, raw_transaction)
VALUES (?, ?, ?, ?)
"""

_UPSERT_ACCOUNT = """
INSERT OR REPLACE INTO accounts (account_id, estimated_balance, related_transactions)
VALUES (?, ?, ?)
"""


def _account_params(record: AccountRecord) -> tuple[str, int, str]:
    try:
        related = json.dumps(list(record.related_transactions))
    except (TypeError, ValueError) as e:
        raise PersistenceError(
            f"Failed to serialize related_transactions for {record.account_id}: {e}"
        ) from e
    return record.account_id, record.estimated_balance, related


def _transaction_params(record: TransactionRecord) -> tuple[str, int, int, str]:
    return record.transaction_id, record.timestamp, record.block_height, record.raw_transaction


# -----------------------------------------------------------------------------
# Abstract backend
# -----------------------------------------------------------------------------


class DatabaseBackend(ABC):
    """Abstract interface for persistence."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables if they do not exist."""
        ...

    @abstractmethod
    def upsert_transaction(self, record: TransactionRecord) -> None:
        """Insert or replace a transaction row by transaction_id."""
        ...

    @abstractmethod
    def upsert_account(self, record: AccountRecord) -> None:
        """Insert or replace an account row by account_id."""
        ...

    @abstractmethod
    def write_batch(
        self,
        transactions: Iterable[TransactionRecord],
        accounts: Iterable[AccountRecord],
    ) -> None:
        """Upsert all rows inside one store transaction (all or nothing)."""
        ...

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> TransactionRecord | None:
        """Return the transaction row, or None."""
        ...

    @abstractmethod
    def get_account(self, account_id: str) -> AccountRecord | None:
        """Return the account row, or None."""
        ...


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend(DatabaseBackend):
    """SQLite implementation; single file, one connection per operation."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec)
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode = WAL")
            cur = conn.cursor()
            yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _write_cursor(self) -> Iterator[sqlite3.Cursor]:
        """Cursor whose sqlite3 faults are re-raised as PersistenceError."""
        try:
            with self._cursor() as cur:
                yield cur
        except (sqlite3.Error, OverflowError, OSError) as e:
            raise PersistenceError(f"SQLite write failed: {e}") from e

    def ensure_schema(self) -> None:
        with self._write_cursor() as cur:
            for stmt in (SCHEMA_TRANSACTIONS, SCHEMA_ACCOUNTS):
                cur.executescript(stmt)

    def upsert_transaction(self, record: TransactionRecord) -> None:
        with self._write_cursor() as cur:
            cur.execute(_UPSERT_TRANSACTION, _transaction_params(record))

    def upsert_account(self, record: AccountRecord) -> None:
        params = _account_params(record)
        with self._write_cursor() as cur:
            cur.execute(_UPSERT_ACCOUNT, params)

    def write_batch(
        self,
        transactions: Iterable[TransactionRecord],
        accounts: Iterable[AccountRecord],
    ) -> None:
        tx_rows = [_transaction_params(r) for r in transactions]
        account_rows = [_account_params(r) for r in accounts]
        if not tx_rows and not account_rows:
            return
        with self._write_cursor() as cur:
            cur.executemany(_UPSERT_TRANSACTION, tx_rows)
            cur.executemany(_UPSERT_ACCOUNT, account_rows)
        logger.debug("db_batch_written", transactions=len(tx_rows), accounts=len(account_rows))

    def get_transaction(self, transaction_id: str) -> TransactionRecord | None:
        with self._cursor() as cur:
            cur.execute(
                "SELECT transaction_id, timestamp, block_height, raw_transaction FROM transactions WHERE transaction_id = ?",
                (transaction_id,),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return TransactionRecord(
            transaction_id=row["transaction_id"],
            timestamp=row["timestamp"],
            block_height=row["block_height"],
            raw_transaction=row["raw_transaction"],
        )

    def get_account(self, account_id: str) -> AccountRecord | None:
        with self._cursor() as cur:
            cur.execute(
                "SELECT account_id, estimated_balance, related_transactions FROM accounts WHERE account_id = ?",
                (account_id,),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return AccountRecord(
            account_id=row["account_id"],
            estimated_balance=row["estimated_balance"],
            related_transactions=json.loads(row["related_transactions"] or "[]"),
        )


# -----------------------------------------------------------------------------
# Database facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class Database:
    """
    Database abstraction: transactions and accounts.

    Uses a DatabaseBackend (SQLite); every write method raises
    PersistenceError on store faults.
    """

    def __init__(self, backend: DatabaseBackend) -> None:
        self._backend = backend

    def ensure_schema(self) -> None:
        """Create tables if they do not exist."""
        self._backend.ensure_schema()

    # --- Transactions ---

    def upsert_transaction(self, record: TransactionRecord) -> None:
        self._backend.upsert_transaction(record)

    def get_transaction(self, transaction_id: str) -> TransactionRecord | None:
        return self._backend.get_transaction(transaction_id)

    # --- Accounts ---

    def upsert_account(self, record: AccountRecord) -> None:
        self._backend.upsert_account(record)

    def get_account(self, account_id: str) -> AccountRecord | None:
        return self._backend.get_account(account_id)

    # --- Batches ---

    def write_batch(
        self,
        transactions: Iterable[TransactionRecord],
        accounts: Iterable[AccountRecord],
    ) -> None:
        """Write transactions then accounts in one store transaction."""
        self._backend.write_batch(transactions, accounts)


def get_database(path: str | Path | None = None) -> Database:
    """
    Return a Database backed by SQLite with the schema ensured.

    path: Path to the SQLite file. Default: "solana.db" in cwd.
    """
    if path is None:
        path = Path("solana.db")
    backend = SQLiteBackend(path)
    db = Database(backend)
    db.ensure_schema()
    return db
