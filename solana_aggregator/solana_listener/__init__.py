"""
Solana chain access package.

JSON-RPC client, epoch window resolution, retrying block retrieval, and the
jsonParsed block parser that turns transactions into transfer records.
"""

from solana_aggregator.solana_listener.parser import (
    TransactionParser,
    get_transaction_signature,
    parse_block,
    parse_transaction,
)
from solana_aggregator.solana_listener.retrieval import BlockFetcher, EpochWindowResolver
from solana_aggregator.solana_listener.rpc_client import SolanaRpcClient

__all__ = [
    "BlockFetcher",
    "EpochWindowResolver",
    "SolanaRpcClient",
    "TransactionParser",
    "get_transaction_signature",
    "parse_block",
    "parse_transaction",
]
