"""
Async HTTP client wrapper for external verification sources.
Owns one httpx client per source per run; records latency and status metrics.
No retries: the pipelines are deliberately conservative towards the target sites.
"""
from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from shared.utils.logging import get_logger
from shared.utils.metrics import EXTERNAL_LATENCY, EXTERNAL_REQUESTS

logger = get_logger(__name__)


class ExternalHTTPClient:
    """
    Async HTTP client for one external source.

    Usable as an async context manager. ``transport`` lets tests plug in
    ``httpx.MockTransport``.
    """

    def __init__(
        self,
        source_name: str,
        headers: dict[str, str] | None = None,
        timeout_s: float = 30.0,
        verify: bool = True,
        follow_redirects: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._source = source_name
        self._headers = headers or {}
        self._timeout = timeout_s
        self._verify = verify
        self._follow_redirects = follow_redirects
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def source_name(self) -> str:
        return self._source

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        self._client = httpx.AsyncClient(
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout, connect=min(self._timeout, 10.0)),
            verify=self._verify,
            follow_redirects=self._follow_redirects,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ExternalHTTPClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Perform one request and record metrics.

        Returns the response whatever its status code; callers decide what a
        status means. Transport errors and timeouts propagate as ``httpx.HTTPError``.
        """
        if not self._client:
            raise RuntimeError("ExternalHTTPClient not started. Call start() first.")

        start_time = time.perf_counter()
        status = "error"
        try:
            resp = await self._client.request(method, url, **kwargs)
            status = str(resp.status_code)
            logger.debug(
                "external_request",
                source=self._source,
                method=method,
                url=url,
                status=resp.status_code,
                latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return resp
        except httpx.TimeoutException:
            status = "timeout"
            raise
        finally:
            EXTERNAL_LATENCY.labels(source=self._source).observe(time.perf_counter() - start_time)
            EXTERNAL_REQUESTS.labels(source=self._source, status=status).inc()

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)
