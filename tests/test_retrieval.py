"""
Tests for epoch window resolution and BlockFetcher retry/backoff.
"""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from solana_aggregator.core.exceptions import BlockFetchFailed, EpochInfoUnavailable
from solana_aggregator.solana_listener.models import EpochInfo, EpochWindow
from solana_aggregator.solana_listener.retrieval import (
    BlockFetcher,
    EpochWindowResolver,
    backoff_delays,
)
from solana_aggregator.solana_listener.rpc_client import BLOCK_REQUEST_CONFIG
from tests.chain_fixtures import MOCK_BLOCK, FakeChainClient


@pytest.mark.asyncio
async def test_resolve_window():
    """start = absolute_slot - slot_index; end = start + slots_in_epoch."""
    client = FakeChainClient(EpochInfo(absolute_slot=310_176_500, slot_index=500, slots_in_epoch=432_000))
    window = await EpochWindowResolver(client).resolve_window()
    assert window == EpochWindow(start_slot=310_176_000, end_slot=310_608_000)


@pytest.mark.asyncio
async def test_resolve_window_failure_is_epoch_info_unavailable():
    client = FakeChainClient(RuntimeError("connection refused"))
    with pytest.raises(EpochInfoUnavailable):
        await EpochWindowResolver(client).resolve_window()


def test_epoch_window_slots_inclusive():
    window = EpochWindow(start_slot=5, end_slot=8)
    assert list(window.slots()) == [5, 6, 7, 8]
    assert len(window) == 4
    with pytest.raises(ValueError):
        EpochWindow(start_slot=9, end_slot=8)


def test_backoff_delays_doubling():
    assert backoff_delays(0) == []
    assert backoff_delays(4) == [2.0, 4.0, 8.0, 16.0]


@pytest.mark.asyncio
async def test_fetch_success_first_attempt(sleep_recorder):
    client = FakeChainClient(EpochInfo(0, 0, 0), {7: MOCK_BLOCK})
    fetcher = BlockFetcher(client, sleep=sleep_recorder)
    block = await fetcher.fetch_with_retry(7, 3)
    assert block.block_time == MOCK_BLOCK["blockTime"]
    assert client.block_calls == [7]
    assert client.configs == [BLOCK_REQUEST_CONFIG]
    assert sleep_recorder.delays == []


@pytest.mark.asyncio
async def test_fetch_recovers_after_transient_failures(sleep_recorder):
    client = FakeChainClient(EpochInfo(0, 0, 0), {7: MOCK_BLOCK}, fail_times={7: 2})
    fetcher = BlockFetcher(client, sleep=sleep_recorder)
    block = await fetcher.fetch_with_retry(7, 3)
    assert len(block.transactions) == 1
    assert client.block_calls == [7, 7, 7]
    assert sleep_recorder.delays == [2.0, 4.0]


@pytest.mark.parametrize("max_retries", [0, 1, 3, 5])
@pytest.mark.asyncio
async def test_fetch_exhausts_budget(max_retries, sleep_recorder):
    """r retries: r + 1 attempts, delays 2, 4, ..., 2^r, then BlockFetchFailed with the last error."""
    client = FakeChainClient(EpochInfo(0, 0, 0), failing={11})
    fetcher = BlockFetcher(client, sleep=sleep_recorder)
    with pytest.raises(BlockFetchFailed) as exc_info:
        await fetcher.fetch_with_retry(11, max_retries)
    assert exc_info.value.slot == 11
    assert "skipped" in str(exc_info.value.cause)
    assert len(client.block_calls) == max_retries + 1
    assert sleep_recorder.delays == [2.0 * 2**i for i in range(max_retries)]


@pytest.mark.asyncio
async def test_fetch_custom_initial_backoff(sleep_recorder):
    client = FakeChainClient(EpochInfo(0, 0, 0), failing={3})
    fetcher = BlockFetcher(client, initial_backoff_sec=0.5, sleep=sleep_recorder)
    with pytest.raises(BlockFetchFailed):
        await fetcher.fetch_with_retry(3, 2)
    assert sleep_recorder.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_resolve_window_negative_start_is_epoch_info_unavailable():
    """slot_index larger than absolute_slot cannot form a window."""
    client = FakeChainClient(EpochInfo(absolute_slot=10, slot_index=20, slots_in_epoch=432_000))
    with pytest.raises(EpochInfoUnavailable):
        await EpochWindowResolver(client).resolve_window()


@pytest.mark.asyncio
async def test_fetch_logs_every_retry_and_give_up(sleep_recorder):
    client = FakeChainClient(EpochInfo(0, 0, 0), failing={11})
    fetcher = BlockFetcher(client, sleep=sleep_recorder)
    with capture_logs() as logs:
        with pytest.raises(BlockFetchFailed):
            await fetcher.fetch_with_retry(11, 3)

    retries = [e for e in logs if e["event"] == "block_fetch_retry"]
    assert [e["attempt"] for e in retries] == [1, 2, 3]
    assert [e["delay_sec"] for e in retries] == [2.0, 4.0, 8.0]
    assert all(e["slot"] == 11 for e in retries)
    give_up = [e for e in logs if e["event"] == "block_fetch_give_up"]
    assert len(give_up) == 1
    assert give_up[0]["attempts"] == 4
    assert give_up[0]["log_level"] == "error"
