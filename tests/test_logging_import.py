"""
Test that aggregator_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from aggregator_logging and use the logger."""
    from solana_aggregator.aggregator_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_slot_logs_with_slot():
    from structlog.testing import capture_logs

    from solana_aggregator.aggregator_logging.logger import bind_slot

    with capture_logs() as logs:
        bind_slot(310176000).info("sweep_block_parsed", tx_count=1)
    assert logs[0]["event"] == "sweep_block_parsed"
    assert logs[0]["slot"] == 310176000
    assert logs[0]["tx_count"] == 1
