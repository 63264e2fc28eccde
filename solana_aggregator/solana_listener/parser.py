"""
Solana block parser: jsonParsed getBlock transactions to transfer records.

For every transaction in a block: take its signature, look for the first
System Program parsed instruction, and validate it as a native transfer
({info: {source, destination, lamports}}). Purely structural; no balance
or reconciliation logic.

Failure scopes:
- UnsupportedEncoding / UnsupportedMessageFormat abort the whole block.
- MalformedTransferPayload drops only the affected transaction.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from solana_aggregator.aggregator_logging import get_logger
from solana_aggregator.core.exceptions import (
    MalformedTransferPayload,
    UnsupportedEncoding,
    UnsupportedMessageFormat,
)
from solana_aggregator.solana_listener.models import (
    SYSTEM_PROGRAM_ID,
    InstructionKind,
    ParsedEntry,
    RawBlock,
    TransactionDetails,
    TransferPayload,
)

logger = get_logger(__name__)


def _json_transaction(transaction: Any) -> dict[str, Any]:
    """Return the transaction object when JSON-encoded; binary encodings are [data, encoding] or a string."""
    if not isinstance(transaction, dict):
        raise UnsupportedEncoding("Unsupported transaction encoding")
    return transaction


def get_transaction_signature(transaction: Any) -> str:
    """
    First signature of a JSON-encoded transaction.

    Raises:
        UnsupportedEncoding: transaction is not a JSON object, or carries no signatures.
    """
    tx = _json_transaction(transaction)
    signatures = tx.get("signatures")
    if not isinstance(signatures, list) or not signatures or not isinstance(signatures[0], str):
        raise UnsupportedEncoding("Transaction has no signature list")
    return signatures[0]


def _is_parsed_message(message: dict[str, Any]) -> bool:
    """jsonParsed messages carry accountKeys as objects and instructions keyed by programId."""
    keys = message.get("accountKeys") or []
    if not isinstance(keys, list):
        return False
    if any(not isinstance(k, dict) for k in keys):
        return False
    instructions = message.get("instructions")
    if not isinstance(instructions, list):
        return False
    return not any(isinstance(ix, dict) and "programIdIndex" in ix for ix in instructions)


def classify_instruction(instruction: Any) -> InstructionKind:
    """Map one jsonParsed instruction to its InstructionKind."""
    if not isinstance(instruction, dict):
        return InstructionKind.UNKNOWN
    program_id = instruction.get("programId")
    if "parsed" in instruction and isinstance(program_id, str):
        if program_id == SYSTEM_PROGRAM_ID:
            return InstructionKind.NATIVE_TRANSFER
        return InstructionKind.PARSED_OTHER
    if isinstance(program_id, str) and "data" in instruction:
        return InstructionKind.PARTIALLY_DECODED
    return InstructionKind.UNKNOWN


def _decode_transfer(
    instruction: dict[str, Any],
    signature: str | None,
    timestamp: int | None,
) -> TransactionDetails:
    try:
        payload = TransferPayload.model_validate(instruction.get("parsed"))
    except ValidationError as e:
        raise MalformedTransferPayload(signature, str(e)) from e
    return TransactionDetails(
        sender=payload.info.source,
        receiver=payload.info.destination,
        amount=payload.info.lamports,
        timestamp=timestamp,
    )


def parse_transaction(
    transaction: Any,
    timestamp: int | None,
    *,
    signature: str | None = None,
) -> TransactionDetails | None:
    """
    Extract native transfer details from one JSON-encoded transaction.

    The first System Program parsed instruction decides the result; later
    instructions are not looked at. Partially decoded and other-program
    instructions are skipped.

    Returns:
        TransactionDetails with timestamp set to the block time, or None when
        no instruction is a System Program parsed instruction.

    Raises:
        UnsupportedEncoding: transaction is not JSON-encoded.
        UnsupportedMessageFormat: message is not in jsonParsed form.
        MalformedTransferPayload: the System Program payload is not a transfer shape.
    """
    tx = _json_transaction(transaction)
    message = tx.get("message")
    if not isinstance(message, dict) or not _is_parsed_message(message):
        raise UnsupportedMessageFormat("Unsupported transaction message format")

    for instruction in message["instructions"]:
        kind = classify_instruction(instruction)
        if kind is InstructionKind.NATIVE_TRANSFER:
            return _decode_transfer(instruction, signature, timestamp)
        if kind is InstructionKind.PARTIALLY_DECODED:
            logger.debug(
                "parser_partially_decoded_instruction",
                signature=signature,
                program_id=instruction.get("programId"),
            )
    return None


def parse_block(block: RawBlock) -> list[ParsedEntry]:
    """
    Parse every transaction of a block into (signature, raw_transaction, details).

    Transactions with a malformed transfer payload are logged and left out;
    the remaining transactions are still parsed. Output keeps block order.

    Raises:
        UnsupportedEncoding / UnsupportedMessageFormat: on the first transaction
            that is not JSON-encoded with a parsed message; no entries are
            returned for the block.
    """
    entries: list[ParsedEntry] = []
    for item in block.transactions:
        transaction = item.get("transaction") if isinstance(item, dict) else None
        signature = get_transaction_signature(transaction)
        try:
            details = parse_transaction(transaction, block.block_time, signature=signature)
        except MalformedTransferPayload as e:
            logger.error(
                "parser_transaction_failed",
                signature=signature,
                error=str(e),
            )
            continue
        if details is None:
            logger.debug("parser_transaction_unsupported", signature=signature)
        entries.append(ParsedEntry(signature, transaction, details))
    return entries


class TransactionParser:
    """Object facade over parse_block for injection into the orchestrator."""

    def parse_block(self, block: RawBlock) -> list[ParsedEntry]:
        return parse_block(block)
