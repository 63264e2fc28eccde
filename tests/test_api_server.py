"""
Tests for the read API: /transaction, /accountid and /health.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from solana_aggregator.api_server.server import create_app
from solana_aggregator.core.exceptions import PersistenceError
from solana_aggregator.database import AccountRecord, TransactionRecord
from tests.chain_fixtures import RECEIVER, SIGNATURE


class _BrokenDatabase:
    def get_transaction(self, transaction_id: str):
        raise PersistenceError("database is locked")

    def get_account(self, account_id: str):
        raise PersistenceError("database is locked")


def test_get_transaction(client, db):
    db.upsert_transaction(TransactionRecord(SIGNATURE, 1720421680, 310176000, '{"signatures": []}'))
    r = client.get("/transaction", params={"tx-id": SIGNATURE})
    assert r.status_code == 200
    assert r.json() == {
        "transaction_id": SIGNATURE,
        "timestamp": 1720421680,
        "block_height": 310176000,
        "raw_transaction": '{"signatures": []}',
    }


def test_get_transaction_not_found(client):
    r = client.get("/transaction", params={"tx-id": "unknown"})
    assert r.status_code == 404
    assert r.text == "Transaction not found"


def test_get_account(client, db):
    db.upsert_account(AccountRecord(RECEIVER, 0, [SIGNATURE]))
    r = client.get("/accountid", params={"account-id": RECEIVER})
    assert r.status_code == 200
    assert r.json() == {
        "account_id": RECEIVER,
        "estimated_balance": 0,
        "related_transactions": [SIGNATURE],
    }


def test_get_account_not_found(client):
    r = client.get("/accountid", params={"account-id": "unknown"})
    assert r.status_code == 404
    assert r.text == "Account not found"


def test_missing_query_parameter(client):
    assert client.get("/transaction").status_code == 422
    assert client.get("/accountid").status_code == 422
    # underscore spelling is not the query name
    assert client.get("/transaction", params={"tx_id": SIGNATURE}).status_code == 422


def test_store_error_returns_500(settings):
    broken = TestClient(create_app(settings, db=_BrokenDatabase(), start_ingestion=False))
    r = broken.get("/transaction", params={"tx-id": SIGNATURE})
    assert r.status_code == 500
    assert r.text == "Internal server error"
    r = broken.get("/accountid", params={"account-id": RECEIVER})
    assert r.status_code == 500


def test_health_without_ingestion(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "ingestion": {"state": "disabled"}}


def test_lifespan_opens_database(settings):
    """With no pre-opened database the lifespan opens settings.db_path."""
    app = create_app(settings, start_ingestion=False)
    with TestClient(app) as c:
        r = c.get("/transaction", params={"tx-id": SIGNATURE})
        assert r.status_code == 404
    assert settings.db_path.exists()
