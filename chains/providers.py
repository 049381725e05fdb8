"""
chains/providers.py - RPC provider with failover.

Provides reliable RPC access with:
- Multiple endpoint failover (transport failures and malformed bodies)
- Request timeout handling
- Connection pooling
- Latency tracking

A JSON-RPC error object (e.g. "execution reverted", "nonce too low") is the
node's answer, not a transport problem, so it is raised immediately instead
of being retried on the next endpoint.
"""

import os
import time
from dataclasses import dataclass
from typing import Any

import httpx

from core.constants import DEFAULT_RPC_TIMEOUT_SECONDS, ErrorCode
from core.exceptions import InfraError, RPCError
from core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None
    last_success_ts: int | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


@dataclass
class RPCResponse:
    """Response from an RPC call."""
    result: Any
    latency_ms: int
    endpoint_used: str


class RPCProvider:
    """
    JSON-RPC provider with failover support.

    Tries endpoints in order until one answers. Tracks statistics per
    endpoint for monitoring.
    """

    def __init__(
        self,
        chain_id: int,
        rpc_urls: list[str],
        timeout_seconds: int = DEFAULT_RPC_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        self.chain_id = chain_id
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._request_id = 0

        self.rpc_urls = self._resolve_urls(rpc_urls)
        self.stats: dict[str, RPCStats] = {
            url: RPCStats(url=url) for url in self.rpc_urls
        }

    def _resolve_urls(self, urls: list[str]) -> list[str]:
        """Expand ${VAR} references; drop URLs whose variables are unset."""
        resolved = []
        for url in urls:
            expanded = os.path.expandvars(url)
            if "${" in expanded:
                logger.warning(f"Skipping RPC URL with unresolved variable: {url}")
                continue
            resolved.append(expanded)
        return resolved

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def call(
        self,
        method: str,
        params: list | None = None,
    ) -> RPCResponse:
        """
        Make an RPC call with failover.

        Raises:
            RPCError: If the node returns a JSON-RPC error object
            InfraError: If every endpoint fails at the transport level or returns
                a body that is not a JSON-RPC object (INFRA_DECODE_ERROR)
        """
        if not self.rpc_urls:
            raise InfraError(
                code=ErrorCode.INFRA_RPC_ERROR,
                message="No RPC endpoints configured",
                details={"chain_id": self.chain_id},
            )

        client = await self._get_client()
        last_error: Exception | None = None

        for url in self.rpc_urls:
            stats = self.stats[url]
            stats.total_requests += 1

            payload = {
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": self._next_request_id(),
            }

            start_ms = int(time.time() * 1000)

            try:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
                body = resp.json()
            except httpx.TimeoutException as e:
                latency_ms = int(time.time() * 1000) - start_ms
                stats.failed_requests += 1
                stats.last_error = f"Timeout after {latency_ms}ms"
                last_error = e
                logger.debug(f"RPC timeout for {url}: {latency_ms}ms")
                continue
            except (httpx.HTTPError, ValueError) as e:
                stats.failed_requests += 1
                stats.last_error = str(e)
                last_error = e
                logger.debug(f"RPC failed for {url}: {e}")
                continue

            if not isinstance(body, dict):
                stats.failed_requests += 1
                last_error = InfraError(
                    code=ErrorCode.INFRA_DECODE_ERROR,
                    message=f"Malformed JSON-RPC response: {type(body).__name__}",
                    details={"url": url, "method": method},
                )
                stats.last_error = last_error.message
                logger.debug(f"RPC failed for {url}: {last_error.message}")
                continue

            latency_ms = int(time.time() * 1000) - start_ms

            if "error" in body:
                error = body["error"]
                error_msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                stats.failed_requests += 1
                stats.last_error = error_msg
                raise RPCError(
                    f"RPC error: {error_msg}",
                    details={
                        "url": url,
                        "method": method,
                        "rpc_code": error.get("code") if isinstance(error, dict) else None,
                        "rpc_data": error.get("data") if isinstance(error, dict) else None,
                    },
                )

            stats.successful_requests += 1
            stats.total_latency_ms += latency_ms
            stats.last_success_ts = int(time.time() * 1000)

            return RPCResponse(
                result=body.get("result"),
                latency_ms=latency_ms,
                endpoint_used=url,
            )

        raise InfraError(
            code=last_error.code if isinstance(last_error, InfraError) else ErrorCode.INFRA_RPC_ERROR,
            message=f"All RPC endpoints failed for chain {self.chain_id}",
            details={
                "chain_id": self.chain_id,
                "method": method,
                "endpoints_tried": len(self.rpc_urls),
                "last_error": str(last_error),
            },
        )

    async def get_chain_id(self) -> int:
        """Get chain ID from RPC."""
        response = await self.call("eth_chainId")
        return int(response.result, 16)

    async def eth_call(
        self,
        to: str,
        data: str,
        block: str = "latest",
    ) -> RPCResponse:
        """Make eth_call against a contract."""
        return await self.call(
            "eth_call",
            [{"to": to, "data": data}, block],
        )

    async def get_gas_price(self) -> tuple[int, int]:
        """
        Get current gas price in wei.

        Returns:
            (gas_price_wei, latency_ms)
        """
        response = await self.call("eth_gasPrice")
        return int(response.result, 16), response.latency_ms

    async def get_balance(self, address: str, block: str = "latest") -> int:
        """Native balance in wei."""
        response = await self.call("eth_getBalance", [address, block])
        return int(response.result, 16)

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        """Next nonce for address."""
        response = await self.call("eth_getTransactionCount", [address, block])
        return int(response.result, 16)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Broadcast a signed transaction; returns its hash."""
        response = await self.call("eth_sendRawTransaction", [raw_tx])
        return response.result

    async def get_transaction_receipt(self, tx_hash: str) -> dict | None:
        """Receipt dict, or None while the transaction is pending."""
        response = await self.call("eth_getTransactionReceipt", [tx_hash])
        return response.result

    def get_stats_summary(self) -> dict:
        """Get statistics summary for all endpoints."""
        return {
            url: {
                "total_requests": s.total_requests,
                "success_rate": round(s.success_rate, 3),
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
