"""
Database abstraction layer: ingested transactions and account rows.

SQLite via Database and get_database(); PersistenceWriter is the async
write path used by the ingestion worker.
"""

from solana_aggregator.database.database import (
    Database,
    DatabaseBackend,
    SQLiteBackend,
    get_database,
)
from solana_aggregator.database.models import AccountRecord, TransactionRecord
from solana_aggregator.database.writer import PersistenceWriter, SlotWriteResult

__all__ = [
    "AccountRecord",
    "Database",
    "DatabaseBackend",
    "PersistenceWriter",
    "SQLiteBackend",
    "SlotWriteResult",
    "TransactionRecord",
    "get_database",
]
