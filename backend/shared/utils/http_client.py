"""
Async HTTP client wrapper for the upstream feed.
Includes retry on transient failures, timeout management and metrics collection.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

import httpx

from shared.config import get_settings
from shared.errors import ParseError, TransportError
from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_LATENCY, FEED_REQUESTS

logger = get_logger(__name__)


class FeedHTTPClient:
    """
    Async HTTP client for the live feed endpoints.
    Maps every failure onto TransportError / ParseError so callers never see httpx types.
    """

    def __init__(
        self,
        base_url: str | None = None,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        max_attempts: int | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.feed_base_url).rstrip("/")
        self._timeout = timeout_s or settings.request_timeout_s
        self._max_attempts = max_attempts or settings.http_max_attempts
        self._default_headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._default_headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("FeedHTTPClient not started. Call start() first.")
        return self._client

    async def get_json(self, path: str, endpoint: str = "unknown") -> Any:
        """
        GET a path and decode its JSON body.

        Args:
            path: Path relative to the feed base URL.
            endpoint: Endpoint label for metrics and logs.

        Raises:
            TransportError: Network failure, timeout or non-2xx status.
            ParseError: The body is not valid JSON.
        """
        last_exc: Optional[TransportError] = None

        for attempt in range(1, self._max_attempts + 1):
            start_time = time.perf_counter()
            status = "unknown"
            try:
                resp = await self.client.get(path)
                status = str(resp.status_code)

                transient = resp.status_code == 429 or resp.status_code >= 500
                if transient and attempt < self._max_attempts:
                    logger.warning(
                        "feed_transient_status",
                        endpoint=endpoint,
                        path=path,
                        status=resp.status_code,
                        attempt=attempt,
                    )
                    retry_after = resp.headers.get("Retry-After", "")
                    delay = float(retry_after) if retry_after.isdigit() else 1.0 * attempt
                    await asyncio.sleep(min(delay, 10.0))
                    continue

                if resp.status_code >= 400:
                    logger.warning(
                        "feed_http_error",
                        endpoint=endpoint,
                        path=path,
                        status=resp.status_code,
                    )
                    raise TransportError(endpoint, f"HTTP {resp.status_code}", resp.status_code)

                try:
                    data = resp.json()
                except ValueError as exc:
                    raise ParseError(f"{endpoint}: response is not JSON") from exc

                logger.debug(
                    "feed_request_success",
                    endpoint=endpoint,
                    path=path,
                    status=resp.status_code,
                    latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
                return data

            except httpx.TimeoutException as exc:
                status = "timeout"
                last_exc = TransportError(endpoint, f"timeout: {exc}")
                logger.warning("feed_timeout", endpoint=endpoint, path=path, attempt=attempt)

            except httpx.HTTPError as exc:
                status = "error"
                last_exc = TransportError(endpoint, str(exc) or type(exc).__name__)
                logger.warning(
                    "feed_request_error",
                    endpoint=endpoint,
                    path=path,
                    error=str(exc),
                    attempt=attempt,
                )

            finally:
                FEED_REQUESTS.labels(endpoint=endpoint, status=status).inc()
                FEED_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - start_time)

            if attempt < self._max_attempts:
                await asyncio.sleep(1.0 * attempt)

        if last_exc:
            raise last_exc
        raise TransportError(endpoint, f"request failed after {self._max_attempts} attempts")
