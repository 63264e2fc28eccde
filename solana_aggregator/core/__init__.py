"""
Core utilities: error taxonomy shared by the listener, database, worker and API.
"""

from solana_aggregator.core.exceptions import (
    AggregatorError,
    BlockFetchFailed,
    BlockParseError,
    ConfigError,
    EpochInfoUnavailable,
    MalformedTransferPayload,
    PersistenceError,
    RpcError,
    UnsupportedEncoding,
    UnsupportedMessageFormat,
)

__all__ = [
    "AggregatorError",
    "BlockFetchFailed",
    "BlockParseError",
    "ConfigError",
    "EpochInfoUnavailable",
    "MalformedTransferPayload",
    "PersistenceError",
    "RpcError",
    "UnsupportedEncoding",
    "UnsupportedMessageFormat",
]
