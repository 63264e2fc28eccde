"""
Structured logging for the Solana aggregator.

JSON logs with timestamp, event_type, slot and error context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from solana_aggregator.aggregator_logging.logger import configure_structlog, get_logger

__all__ = ["configure_structlog", "get_logger"]
