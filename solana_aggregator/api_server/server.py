"""
FastAPI server: read-only API over the ingestion database.

Exposes GET /transaction?tx-id=<signature> and GET /accountid?account-id=<address>.
Reads from the database only. The lifespan opens the store and starts the
epoch sweep as a background task; a failed sweep never stops the API.
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from solana_aggregator import __version__
from solana_aggregator.agent_worker.runner import IngestionHandle, start_ingestion_task
from solana_aggregator.aggregator_logging import get_logger
from solana_aggregator.config.settings import Settings, get_settings
from solana_aggregator.database import Database, get_database
from solana_aggregator.solana_listener.retrieval import ChainClient

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class TransactionResponse(BaseModel):
    """GET /transaction response: stored transaction row."""

    transaction_id: str = Field(..., description="First transaction signature (base58)")
    timestamp: int = Field(..., description="Block time (Unix seconds); 0 when unknown")
    block_height: int = Field(..., description="Slot the transaction was ingested from")
    raw_transaction: str = Field(..., description="Transaction object as JSON text")


class AccountResponse(BaseModel):
    """GET /accountid response: stored account row."""

    account_id: str = Field(..., description="Account address (base58)")
    estimated_balance: int = Field(..., description="Placeholder balance in lamports")
    related_transactions: list[str] = Field(default_factory=list, description="Transaction ids")


def _error_response(status_code: int, message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code)


# -----------------------------------------------------------------------------
# Dependency
# -----------------------------------------------------------------------------


def get_db(request: Request) -> Database:
    """Dependency: app-scoped Database opened by create_app or the lifespan."""
    return request.app.state.db


# -----------------------------------------------------------------------------
# Lifespan: open store, start background sweep
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database and start the sweep task; cancel it on shutdown if still running."""
    settings: Settings = app.state.settings or get_settings()
    app.state.settings = settings
    if app.state.db is None:
        app.state.db = await asyncio.to_thread(get_database, settings.db_path)
        logger.info("api_database_opened", db_path=str(settings.db_path))

    handle: IngestionHandle | None = None
    if app.state.start_ingestion:
        handle = start_ingestion_task(settings, app.state.db, client=app.state.chain_client)
        app.state.ingestion = handle
        logger.info("api_ingestion_task_started")

    yield

    if handle is not None and not handle.task.done():
        handle.task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await handle.task
        logger.info("api_ingestion_task_cancelled")


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    db: Database | None = None,
    start_ingestion: bool = True,
    chain_client: ChainClient | None = None,
) -> FastAPI:
    """
    Build the ASGI app.

    Args:
        settings: service settings; None loads them in the lifespan.
        db: pre-opened database (tests); None opens settings.db_path.
        start_ingestion: launch the epoch sweep in the lifespan.
        chain_client: client for the sweep; None creates one from settings.rpc_url.
    """
    app = FastAPI(
        title="Solana Aggregator API",
        description="Read-only API for ingested Solana transactions and accounts.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.start_ingestion = start_ingestion
    app.state.chain_client = chain_client
    app.state.ingestion = None

    @app.get("/transaction", response_model=TransactionResponse)
    def get_transaction(
        tx_id: str = Query(..., alias="tx-id"),
        db: Database = Depends(get_db),
    ):
        """Return the stored transaction; 404 when unknown, 500 on store errors."""
        try:
            record = db.get_transaction(tx_id)
        except Exception as e:
            logger.error("api_db_query_failed", endpoint="transaction", error=str(e))
            return _error_response(500, "Internal server error")
        if record is None:
            return _error_response(404, "Transaction not found")
        return record.to_dict()

    @app.get("/accountid", response_model=AccountResponse)
    def get_account(
        account_id: str = Query(..., alias="account-id"),
        db: Database = Depends(get_db),
    ):
        """Return the stored account; 404 when unknown, 500 on store errors."""
        try:
            record = db.get_account(account_id)
        except Exception as e:
            logger.error("api_db_query_failed", endpoint="accountid", error=str(e))
            return _error_response(500, "Internal server error")
        if record is None:
            return _error_response(404, "Account not found")
        return record.to_dict()

    @app.get("/health")
    def health() -> JSONResponse:
        """Liveness plus ingestion sweep state."""
        handle: IngestionHandle | None = app.state.ingestion
        ingestion: dict[str, Any] = handle.status.to_dict() if handle else {"state": "disabled"}
        return JSONResponse({"status": "ok", "ingestion": ingestion})

    return app
