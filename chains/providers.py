"""
chains/providers.py - JSON-RPC access with endpoint failover.

Used only by pool maintenance (discovery through a V3 factory and
deployed-code checks). Never on the trade path.

Provides:
- Multiple endpoint failover
- Request timeout handling
- Per-endpoint statistics
"""

import os
import time
from dataclasses import dataclass
from typing import Any

import httpx
from dotenv import load_dotenv

from core.constants import ErrorCode
from core.exceptions import InfraError
from core.logging import get_logger

logger = get_logger(__name__)

load_dotenv()


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None

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


def resolve_rpc_urls(urls: list[str]) -> list[str]:
    """
    Substitute ${ALCHEMY_API_KEY} and drop keyed URLs when no key is set.
    """
    api_key = os.getenv("ALCHEMY_API_KEY", "")
    resolved = []
    for url in urls:
        resolved_url = url.replace("${ALCHEMY_API_KEY}", api_key)
        if api_key or "alchemy" not in resolved_url.lower():
            resolved.append(resolved_url)
    return resolved


class RPCProvider:
    """
    RPC provider with failover support.

    Tries endpoints in order until one succeeds.
    """

    def __init__(
        self,
        rpc_urls: list[str],
        timeout_seconds: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.rpc_urls = resolve_rpc_urls(rpc_urls)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._request_id = 0
        self.stats: dict[str, RPCStats] = {
            url: RPCStats(url=url) for url in self.rpc_urls
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RPCProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

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
            InfraError: If no endpoint is configured or all endpoints fail
        """
        if not self.rpc_urls:
            raise InfraError(
                code=ErrorCode.INFRA_RPC_ERROR,
                message="No RPC endpoints configured",
            )

        client = await self._get_client()
        last_error: str | None = None

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
                latency_ms = int(time.time() * 1000) - start_ms
                result = resp.json()
            except httpx.TimeoutException:
                latency_ms = int(time.time() * 1000) - start_ms
                stats.failed_requests += 1
                last_error = stats.last_error = f"Timeout after {latency_ms}ms"
                logger.debug(f"RPC timeout for {url}", extra={"context": {"method": method}})
                continue
            except (httpx.HTTPError, ValueError) as e:
                stats.failed_requests += 1
                last_error = stats.last_error = str(e)
                logger.debug(f"RPC failed for {url}: {e}", extra={"context": {"method": method}})
                continue

            if "error" in result:
                error = result["error"]
                error_msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                stats.failed_requests += 1
                last_error = stats.last_error = error_msg
                logger.debug(f"RPC error from {url}: {error_msg}", extra={"context": {"method": method}})
                continue

            stats.successful_requests += 1
            stats.total_latency_ms += latency_ms
            return RPCResponse(
                result=result.get("result"),
                latency_ms=latency_ms,
                endpoint_used=url,
            )

        raise InfraError(
            code=ErrorCode.INFRA_RPC_ERROR,
            message=f"All RPC endpoints failed for {method}",
            details={
                "endpoints_tried": len(self.rpc_urls),
                "last_error": last_error,
            },
        )

    async def get_chain_id(self) -> int:
        response = await self.call("eth_chainId")
        return int(response.result, 16)

    async def eth_call(self, to: str, data: str, block: str = "latest") -> RPCResponse:
        return await self.call("eth_call", [{"to": to, "data": data}, block])

    async def get_code(self, address: str, block: str = "latest") -> str:
        """Deployed bytecode at address ("0x" when none)."""
        response = await self.call("eth_getCode", [address, block])
        return response.result or "0x"

    async def has_code(self, address: str) -> bool:
        code = await self.get_code(address)
        return code not in ("0x", "0x0") and len(code) > 2

    def get_stats_summary(self) -> dict:
        return {
            url: {
                "total_requests": s.total_requests,
                "success_rate": round(s.success_rate, 3),
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
