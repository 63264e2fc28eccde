"""
Structured JSON logging: timestamp, event_type, slot, error.

structlog with ISO timestamps, log level, and consistent keys for
aggregation. All pipeline modules use get_logger() and pass event_type as
the first argument plus slot / signature / error where relevant.

Uses only Python stdlib logging and structlog; no solana_aggregator imports to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# JSON output for production (LOG_FORMAT=json); human-readable for local
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Ensure timestamp is always present (ISO 8601)."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type; keep message if present."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog(level: str | None = None, fmt: str | None = None) -> None:
    """
    Configure structlog: JSON or console renderer, timestamp, level, event_type.

    Called once at import with env defaults; main.py calls it again when the
    loaded settings carry a different log level.
    """
    level_name = (level or LOG_LEVEL).upper()
    level_value = getattr(logging, level_name, logging.INFO)
    fmt = (fmt or LOG_FORMAT).strip().lower()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
    ]
    if fmt == "json":
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


# One-time configuration on first import
if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

    Log with event_type (first arg) and key-value context:
        logger = get_logger(__name__)
        logger.info("block_fetched", slot=slot, tx_count=12)
    Output (JSON): {"event_type": "block_fetched", "slot": ..., "tx_count": 12, "timestamp": "...", "level": "info", "logger": "module.name"}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_slot(slot: int) -> structlog.BoundLogger:
    """Return a logger with slot bound to all subsequent log calls."""
    return get_logger("solana_aggregator").bind(slot=slot)
