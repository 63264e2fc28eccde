"""
Epoch window resolution and retrying block retrieval.

- EpochWindowResolver: getEpochInfo -> absolute slot range of the epoch.
- BlockFetcher: getBlock for one slot with bounded retry and exponential
  backoff (2s, 4s, 8s, ...). Sleeps with asyncio.sleep so the read API and
  other tasks keep running while a backoff is pending.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Protocol

from solana_aggregator.aggregator_logging import get_logger
from solana_aggregator.core.exceptions import BlockFetchFailed, EpochInfoUnavailable
from solana_aggregator.solana_listener.models import EpochInfo, EpochWindow, RawBlock
from solana_aggregator.solana_listener.rpc_client import BLOCK_REQUEST_CONFIG

logger = get_logger(__name__)

DEFAULT_INITIAL_BACKOFF_SEC = 2.0


class ChainClient(Protocol):
    """What the pipeline needs from the chain; SolanaRpcClient implements it."""

    async def get_epoch_info(self) -> EpochInfo: ...

    async def get_block(self, slot: int, config: dict[str, Any] | None = None) -> RawBlock: ...


def backoff_delays(max_retries: int, initial_sec: float = DEFAULT_INITIAL_BACKOFF_SEC) -> list[float]:
    """Delays slept between attempts: initial, 2*initial, ... (max_retries values)."""
    return [initial_sec * (2**i) for i in range(max_retries)]


class EpochWindowResolver:
    """Computes the slot window of the current epoch."""

    def __init__(self, client: ChainClient) -> None:
        self._client = client

    async def resolve_window(self) -> EpochWindow:
        """
        start_slot = absolute_slot - slot_index; end_slot = start_slot + slots_in_epoch.

        Raises:
            EpochInfoUnavailable: the epoch info call failed, or its values
                do not form a valid window.
        """
        try:
            info = await self._client.get_epoch_info()
        except Exception as e:
            logger.error("epoch_info_failed", error=str(e))
            raise EpochInfoUnavailable(f"Failed to get epoch info: {e}") from e
        start_slot = info.absolute_slot - info.slot_index
        try:
            window = EpochWindow(start_slot=start_slot, end_slot=start_slot + info.slots_in_epoch)
        except ValueError as e:
            logger.error("epoch_window_invalid", error=str(e))
            raise EpochInfoUnavailable(f"Invalid epoch info: {e}") from e
        logger.info(
            "epoch_window_resolved",
            epoch=info.epoch,
            absolute_slot=info.absolute_slot,
            slot_index=info.slot_index,
            slots_in_epoch=info.slots_in_epoch,
            start_slot=window.start_slot,
            end_slot=window.end_slot,
        )
        return window


class BlockFetcher:
    """
    Fetches one block per call; retries failed requests with exponential backoff.

    Args:
        client: chain client exposing get_block(slot, config).
        initial_backoff_sec: first delay; doubled after every failed attempt.
        sleep: awaitable sleep function (asyncio.sleep; tests inject a recorder).
    """

    def __init__(
        self,
        client: ChainClient,
        *,
        initial_backoff_sec: float = DEFAULT_INITIAL_BACKOFF_SEC,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if initial_backoff_sec < 0:
            raise ValueError("initial_backoff_sec must be non-negative")
        self._client = client
        self._initial_backoff = initial_backoff_sec
        self._sleep = sleep

    async def fetch_with_retry(self, slot: int, max_retries: int) -> RawBlock:
        """
        Fetch the block at slot; on failure retry up to max_retries more times.

        Total attempts are max_retries + 1. Delays between attempts are
        initial, 2*initial, 4*initial, ...

        Raises:
            BlockFetchFailed: every attempt failed; carries the last error.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        delays = backoff_delays(max_retries, self._initial_backoff)
        attempt = 0
        while True:
            try:
                block = await self._client.get_block(slot, BLOCK_REQUEST_CONFIG)
            except Exception as e:
                if attempt >= max_retries:
                    logger.error(
                        "block_fetch_give_up",
                        slot=slot,
                        attempts=attempt + 1,
                        error=str(e),
                    )
                    raise BlockFetchFailed(slot, e) from e
                delay = delays[attempt]
                attempt += 1
                logger.info(
                    "block_fetch_retry",
                    slot=slot,
                    attempt=attempt,
                    max_retries=max_retries,
                    delay_sec=delay,
                    error=str(e),
                )
                await self._sleep(delay)
                continue
            logger.debug(
                "block_fetched",
                slot=slot,
                attempt=attempt,
                tx_count=len(block.transactions),
            )
            return block
