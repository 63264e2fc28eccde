"""
Ingestion runner: background task lifecycle for the epoch sweep.

- build_orchestrator(): wire RPC client, resolver, fetcher, parser, writer.
- run_ingestion(): run one sweep; report failure through logs and status,
  never re-raise (the read API keeps serving).
- start_ingestion_task(): schedule run_ingestion on the running event loop.
  Started once by the FastAPI lifespan.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from solana_aggregator.agent_worker.worker import IngestionOrchestrator, SweepStats
from solana_aggregator.aggregator_logging import get_logger
from solana_aggregator.config.env import mask_rpc_url
from solana_aggregator.config.settings import Settings
from solana_aggregator.database import Database, PersistenceWriter
from solana_aggregator.solana_listener.parser import TransactionParser
from solana_aggregator.solana_listener.retrieval import (
    BlockFetcher,
    ChainClient,
    EpochWindowResolver,
)
from solana_aggregator.solana_listener.rpc_client import SolanaRpcClient

logger = get_logger(__name__)

STATE_PENDING = "pending"
STATE_RUNNING = "running"
STATE_COMPLETED = "completed"
STATE_FAILED = "failed"


@dataclass
class IngestionStatus:
    """Mutable sweep status exposed by GET /health."""

    state: str = STATE_PENDING
    last_error: str | None = None
    stats: SweepStats | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "last_error": self.last_error,
            "stats": self.stats.to_dict() if self.stats else None,
        }


@dataclass
class IngestionHandle:
    """Background task plus its status."""

    task: asyncio.Task[SweepStats | None]
    status: IngestionStatus = field(default_factory=IngestionStatus)


def build_orchestrator(
    settings: Settings,
    db: Database,
    client: ChainClient,
    *,
    initial_backoff_sec: float | None = None,
) -> IngestionOrchestrator:
    """Wire the pipeline components for one sweep."""
    fetcher_kwargs: dict[str, Any] = {}
    if initial_backoff_sec is not None:
        fetcher_kwargs["initial_backoff_sec"] = initial_backoff_sec
    return IngestionOrchestrator(
        EpochWindowResolver(client),
        BlockFetcher(client, **fetcher_kwargs),
        TransactionParser(),
        PersistenceWriter(db),
        retry_attempts=settings.retry_attempts,
    )


async def run_ingestion(
    settings: Settings,
    db: Database,
    *,
    client: ChainClient | None = None,
    status: IngestionStatus | None = None,
) -> SweepStats | None:
    """
    Run one epoch sweep. Returns the sweep stats, or None when the sweep failed.

    A client is created from settings.rpc_url when none is given.
    """
    status = status or IngestionStatus()
    status.state = STATE_RUNNING
    logger.info(
        "ingestion_started",
        rpc_url=mask_rpc_url(settings.rpc_url),
        retry_attempts=settings.retry_attempts,
    )
    try:
        if client is None:
            async with SolanaRpcClient(settings.rpc_url) as rpc:
                stats = await build_orchestrator(settings, db, rpc).run_sweep()
        else:
            stats = await build_orchestrator(settings, db, client).run_sweep()
    except asyncio.CancelledError:
        status.state = STATE_FAILED
        status.last_error = "cancelled"
        logger.warning("ingestion_cancelled")
        raise
    except Exception as e:
        status.state = STATE_FAILED
        status.last_error = str(e)
        logger.exception("ingestion_failed", error=str(e), error_kind=type(e).__name__)
        return None
    status.state = STATE_COMPLETED
    status.stats = stats
    return stats


def start_ingestion_task(
    settings: Settings,
    db: Database,
    *,
    client: ChainClient | None = None,
) -> IngestionHandle:
    """Schedule the sweep as a background task on the running loop."""
    status = IngestionStatus()
    task = asyncio.create_task(
        run_ingestion(settings, db, client=client, status=status),
        name="epoch-ingestion",
    )
    return IngestionHandle(task=task, status=status)
