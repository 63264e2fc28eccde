"""
Pytest fixtures for aggregator tests. Uses a temporary SQLite DB and a fake chain client.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from solana_aggregator.solana_listener.models import RawBlock
from tests.chain_fixtures import MOCK_BLOCK, SleepRecorder


@pytest.fixture
def mock_block() -> dict[str, Any]:
    return copy.deepcopy(MOCK_BLOCK)


@pytest.fixture
def raw_block(mock_block) -> RawBlock:
    return RawBlock.from_rpc_result(mock_block)


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database with schema, in a temporary directory."""
    from solana_aggregator.database import get_database

    return get_database(tmp_path / "solana.db")


@pytest.fixture
def settings(tmp_path):
    from solana_aggregator.config.settings import Settings

    return Settings(
        rpc_url="http://localhost:8899",
        retry_attempts=2,
        server_address="127.0.0.1:3000",
        db_path=tmp_path / "solana.db",
    )


@pytest.fixture
def client(db, settings):
    """FastAPI TestClient over the temporary database; sweep not started."""
    from fastapi.testclient import TestClient

    from solana_aggregator.api_server.server import create_app

    return TestClient(create_app(settings, db=db, start_ingestion=False))


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
