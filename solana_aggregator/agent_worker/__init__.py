"""
Agent worker package: epoch ingestion sweep and its background runner.
"""

from solana_aggregator.agent_worker.runner import (
    IngestionHandle,
    IngestionStatus,
    run_ingestion,
    start_ingestion_task,
)
from solana_aggregator.agent_worker.worker import IngestionOrchestrator, SweepStats

__all__ = [
    "IngestionHandle",
    "IngestionOrchestrator",
    "IngestionStatus",
    "SweepStats",
    "run_ingestion",
    "start_ingestion_task",
]
