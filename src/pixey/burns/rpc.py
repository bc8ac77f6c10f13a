"""Minimal Solana JSON-RPC client over httpx.

Only the two calls the API needs: ``getTransaction`` for burn verification
and ``getBalance`` for the account-creation gate. Failures are never retried;
callers surface them as 500.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx
import structlog

from pixey.config import get_settings
from pixey.errors import UpstreamError

logger = structlog.get_logger()

_ids = itertools.count(1)


class SolanaRpcClient:
    """JSON-RPC 2.0 over HTTP POST."""

    def __init__(self, url: str, timeout: float = 15.0) -> None:
        self.url = url
        self.timeout = timeout

    async def _call(self, method: str, params: list[Any]) -> Any:  # noqa: ANN401
        payload = {"jsonrpc": "2.0", "id": next(_ids), "method": method, "params": params}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("solana_rpc_failed", method=method, error=str(e))
            raise UpstreamError("Solana RPC request failed") from e

        if body.get("error"):
            logger.warning("solana_rpc_error", method=method, error=body["error"])
            raise UpstreamError("Solana RPC returned an error")
        return body.get("result")

    async def get_transaction(self, signature: str) -> dict[str, Any] | None:
        """Fetch a confirmed transaction with its meta, base64-encoded.

        Returns None when the cluster does not know the signature yet.
        """
        return await self._call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "base64",
                    "commitment": "confirmed",
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )

    async def get_balance(self, wallet_address: str) -> int:
        """Balance of ``wallet_address`` in lamports."""
        result = await self._call("getBalance", [wallet_address, {"commitment": "confirmed"}])
        if isinstance(result, dict):
            return int(result.get("value", 0))
        return int(result or 0)


def get_solana_rpc() -> SolanaRpcClient:
    """FastAPI dependency; tests replace it through ``dependency_overrides``."""
    settings = get_settings()
    return SolanaRpcClient(settings.solana_rpc_url, timeout=settings.solana_rpc_timeout_seconds)
