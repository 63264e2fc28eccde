"""
Application-level exceptions.

One closed hierarchy rooted at AggregatorError. Callers branch on the class,
never on message text:

- EpochInfoUnavailable: no epoch window can be formed; fatal to a sweep.
- BlockFetchFailed: retry budget for a slot exhausted; the slot is skipped.
- UnsupportedEncoding / UnsupportedMessageFormat: a block cannot be parsed;
  the whole block is skipped.
- MalformedTransferPayload: one transfer instruction has an unexpected
  payload; only that transaction is skipped.
- PersistenceError: the store rejected a write; fatal to a sweep.
"""

from __future__ import annotations


class AggregatorError(Exception):
    """Base class for all solana_aggregator errors."""


class ConfigError(AggregatorError):
    """Configuration file or environment holds an invalid value."""


class RpcError(AggregatorError):
    """JSON-RPC error object (or empty result) returned by the Solana node."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(f"Solana RPC error: {message} (code={code})")
        self.code = code
        self.rpc_message = message


class EpochInfoUnavailable(AggregatorError):
    """getEpochInfo failed; no slot window can be computed."""


class BlockFetchFailed(AggregatorError):
    """Block retrieval for a slot failed after all retry attempts."""

    def __init__(self, slot: int, cause: BaseException) -> None:
        super().__init__(f"Failed to fetch block at slot {slot}: {cause}")
        self.slot = slot
        self.cause = cause


class BlockParseError(AggregatorError):
    """Parsing a block was aborted; no transaction of the block is kept."""


class UnsupportedEncoding(BlockParseError):
    """Transaction is not in the JSON object encoding."""


class UnsupportedMessageFormat(BlockParseError):
    """Transaction message is not in jsonParsed form."""


class MalformedTransferPayload(AggregatorError):
    """System Program instruction payload is not {info: {source, destination, lamports}}."""

    def __init__(self, signature: str | None, detail: str) -> None:
        super().__init__(f"Failed to deserialize transfer info: {detail}")
        self.signature = signature
        self.detail = detail


class PersistenceError(AggregatorError):
    """Store fault while writing a transaction or account record."""
