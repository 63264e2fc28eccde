"""
Data models for the block ingestion path.

- EpochInfo / EpochWindow: the slot range of one sweep.
- RawBlock: a getBlock (jsonParsed) result, owned by the fetcher and consumed
  by the parser.
- TransferPayload: validated System Program transfer instruction payload.
- TransactionDetails / ParsedEntry: parser output.
- InstructionKind: closed set of instruction shapes in a jsonParsed message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

# System Program (native SOL transfers)
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class EpochInfo:
    """Subset of getEpochInfo needed to locate the epoch's slot range."""

    absolute_slot: int
    slot_index: int
    slots_in_epoch: int
    epoch: int | None = None
    block_height: int | None = None
    transaction_count: int | None = None

    @classmethod
    def from_rpc_result(cls, result: dict[str, Any]) -> "EpochInfo":
        """Build from a getEpochInfo result object."""
        return cls(
            absolute_slot=int(result["absoluteSlot"]),
            slot_index=int(result["slotIndex"]),
            slots_in_epoch=int(result["slotsInEpoch"]),
            epoch=result.get("epoch"),
            block_height=result.get("blockHeight"),
            transaction_count=result.get("transactionCount"),
        )


@dataclass(frozen=True)
class EpochWindow:
    """Slot range of one sweep; both ends inclusive."""

    start_slot: int
    end_slot: int

    def __post_init__(self) -> None:
        if self.start_slot < 0 or self.end_slot < 0:
            raise ValueError("slots must be non-negative")
        if self.end_slot < self.start_slot:
            raise ValueError("end_slot must be >= start_slot")

    def slots(self) -> Iterator[int]:
        """Slots in increasing order, start_slot through end_slot."""
        return iter(range(self.start_slot, self.end_slot + 1))

    def __len__(self) -> int:
        return self.end_slot - self.start_slot + 1


@dataclass
class RawBlock:
    """
    Confirmed block as returned by getBlock with jsonParsed encoding.

    Transactions are kept as raw RPC dicts ({transaction, meta, version});
    interpretation is the parser's job.
    """

    block_time: int | None
    """Unix timestamp (seconds) from blockTime; None if the node has none."""
    block_height: int | None
    transactions: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_rpc_result(cls, result: dict[str, Any]) -> "RawBlock":
        """Build from a getBlock result object."""
        block_time = result.get("blockTime")
        return cls(
            block_time=int(block_time) if block_time is not None else None,
            block_height=result.get("blockHeight"),
            transactions=list(result.get("transactions") or []),
        )


class TransferInfo(BaseModel):
    """info object of a parsed System Program transfer."""

    model_config = ConfigDict(extra="ignore")

    source: StrictStr
    destination: StrictStr
    lamports: StrictInt = Field(ge=0, le=U64_MAX)


class TransferPayload(BaseModel):
    """parsed object of a System Program instruction: {info, type}."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    info: TransferInfo
    instruction_type: StrictStr = Field(alias="type")


@dataclass(frozen=True)
class TransactionDetails:
    """Normalized native transfer extracted from one transaction."""

    sender: str
    receiver: str
    amount: int
    """Transfer amount in lamports (1 SOL = 1_000_000_000 lamports)."""
    timestamp: int | None
    """Block time of the containing block, not a per-transaction value."""


class ParsedEntry(NamedTuple):
    """One parser output row: (signature, raw_transaction, details or None)."""

    signature: str
    raw_transaction: Any
    details: TransactionDetails | None


class InstructionKind(Enum):
    """Shape of one instruction inside a jsonParsed message."""

    NATIVE_TRANSFER = "native_transfer"
    """Parsed instruction of the System Program; candidate transfer."""
    PARSED_OTHER = "parsed_other"
    """Parsed instruction of any other program."""
    PARTIALLY_DECODED = "partially_decoded"
    """Program id plus raw accounts/data; no parser exists for it on the node."""
    UNKNOWN = "unknown"
