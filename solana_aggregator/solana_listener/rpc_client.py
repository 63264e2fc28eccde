"""
Solana JSON-RPC client: getEpochInfo and getBlock over HTTP.

Thin async wrapper around httpx.AsyncClient. Transport and HTTP status
errors surface as httpx exceptions; JSON-RPC error objects and null
results surface as RpcError. No retry here; BlockFetcher owns retry.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx

from solana_aggregator.aggregator_logging import get_logger
from solana_aggregator.core.exceptions import RpcError
from solana_aggregator.solana_listener.models import EpochInfo, RawBlock

logger = get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT_SEC = 30.0

# Fixed getBlock configuration: full jsonParsed transactions, no rewards.
BLOCK_REQUEST_CONFIG: dict[str, Any] = {
    "encoding": "jsonParsed",
    "transactionDetails": "full",
    "rewards": False,
    "maxSupportedTransactionVersion": 1,
}


class SolanaRpcClient:
    """
    Async JSON-RPC client for a single Solana RPC endpoint.

    Use as an async context manager, or call aclose() when done. An existing
    httpx.AsyncClient may be injected (tests pass one backed by MockTransport).
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec))
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "SolanaRpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _build_body(self, method: str, params: list[Any] | None) -> dict[str, Any]:
        body: dict[str, Any] = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        if params is not None:
            body["params"] = params
        return body

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Perform one JSON-RPC call; raise on transport, HTTP, or RPC error."""
        body = self._build_body(method, params)
        resp = await self._client.post(self._rpc_url, json=body)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data and data["error"] is not None:
            err = data["error"]
            logger.debug("rpc_error_response", method=method, error=str(err))
            if isinstance(err, dict):
                raise RpcError(str(err.get("message", err)), code=err.get("code"))
            raise RpcError(str(err))
        result = data.get("result")
        if result is None:
            raise RpcError(f"{method} returned no result")
        return result

    async def get_epoch_info(self) -> EpochInfo:
        result = await self.call("getEpochInfo")
        try:
            return EpochInfo.from_rpc_result(result)
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError(f"malformed getEpochInfo result: {e!r}") from e

    async def get_block(self, slot: int, config: dict[str, Any] | None = None) -> RawBlock:
        """Fetch the confirmed block at slot with BLOCK_REQUEST_CONFIG."""
        result = await self.call("getBlock", [slot, dict(config or BLOCK_REQUEST_CONFIG)])
        if not isinstance(result, dict):
            raise RpcError(f"malformed getBlock result for slot {slot}")
        try:
            return RawBlock.from_rpc_result(result)
        except (TypeError, ValueError) as e:
            raise RpcError(f"malformed getBlock result for slot {slot}: {e!r}") from e
