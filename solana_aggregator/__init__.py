"""
Solana Aggregator: epoch block ingestion and transfer lookup service.

Sweeps the confirmed blocks of the current epoch, extracts native SOL
transfers, stores transaction and account records in SQLite, and serves
them through a small read-only HTTP API.
"""

__version__ = "0.1.0"
