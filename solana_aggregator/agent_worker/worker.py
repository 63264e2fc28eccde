"""
Epoch sweep: resolve window → for each slot: fetch → parse → persist.

Network and parse faults are tolerated per slot (logged, slot skipped);
store faults are not: a PersistenceError ends the sweep. The window is
swept once; there is no resume position and no loop into the next epoch.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass

from solana_aggregator.aggregator_logging import get_logger
from solana_aggregator.aggregator_logging.logger import bind_slot
from solana_aggregator.core.exceptions import BlockFetchFailed, BlockParseError
from solana_aggregator.database.writer import PersistenceWriter
from solana_aggregator.solana_listener.parser import TransactionParser
from solana_aggregator.solana_listener.retrieval import BlockFetcher, EpochWindowResolver

logger = get_logger(__name__)

# Progress log every N slots
PROGRESS_LOG_INTERVAL = 1000


@dataclass
class SweepStats:
    """Counters for one sweep; returned by run_sweep and logged on completion."""

    start_slot: int = 0
    end_slot: int = 0
    slots_processed: int = 0
    fetch_failures: int = 0
    parse_failures: int = 0
    transactions_stored: int = 0
    accounts_stored: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class IngestionOrchestrator:
    """
    Composes EpochWindowResolver, BlockFetcher, TransactionParser and
    PersistenceWriter into a single sequential epoch sweep.
    """

    def __init__(
        self,
        resolver: EpochWindowResolver,
        fetcher: BlockFetcher,
        parser: TransactionParser,
        writer: PersistenceWriter,
        *,
        retry_attempts: int,
    ) -> None:
        if retry_attempts < 0:
            raise ValueError("retry_attempts must be non-negative")
        self._resolver = resolver
        self._fetcher = fetcher
        self._parser = parser
        self._writer = writer
        self._retry_attempts = retry_attempts

    async def run_sweep(self) -> SweepStats:
        """
        Sweep the current epoch window once, slots in increasing order.

        Raises:
            EpochInfoUnavailable: window could not be resolved.
            PersistenceError: a slot's records could not be stored; later
                slots are not processed.
        """
        window = await self._resolver.resolve_window()
        stats = SweepStats(start_slot=window.start_slot, end_slot=window.end_slot)
        started = time.monotonic()
        logger.info(
            "sweep_started",
            start_slot=window.start_slot,
            end_slot=window.end_slot,
            slot_count=len(window),
        )

        for slot in window.slots():
            slot_log = bind_slot(slot)
            try:
                block = await self._fetcher.fetch_with_retry(slot, self._retry_attempts)
            except BlockFetchFailed as e:
                stats.fetch_failures += 1
                slot_log.error("sweep_block_fetch_failed", error=str(e.cause))
                continue

            try:
                entries = self._parser.parse_block(block)
            except BlockParseError as e:
                stats.parse_failures += 1
                slot_log.error("sweep_block_parse_failed", error=str(e), error_kind=type(e).__name__)
                continue
            slot_log.info("sweep_block_parsed", tx_count=len(entries))

            written = await self._writer.persist_slot(slot, block, entries)
            stats.slots_processed += 1
            stats.transactions_stored += written.transactions
            stats.accounts_stored += written.accounts

            if (slot - window.start_slot + 1) % PROGRESS_LOG_INTERVAL == 0:
                logger.info("sweep_progress", current_slot=slot, **stats.to_dict())

        logger.info(
            "sweep_completed",
            elapsed_sec=round(time.monotonic() - started, 2),
            **stats.to_dict(),
        )
        return stats
