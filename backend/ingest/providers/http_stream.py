"""
HTTP + Server-Sent-Events feed provider.

Snapshot and standings are plain JSON GETs; the live channel is a long-lived
text/event-stream response whose `connected` event marks a fresh connection
and whose `live` events carry the full match array. The channel reconnects on
its own with exponential backoff and jitter.
"""
from __future__ import annotations

import asyncio
import random
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional
from urllib.parse import quote

import httpx

from shared.config import Settings, get_settings
from shared.errors import TransportError
from shared.utils.http_client import FeedHTTPClient
from shared.utils.logging import get_logger
from shared.utils.metrics import CHANNEL_RECONNECTS

from ingest.providers.base import ChannelSignal, FeedProvider, LiveChannel
from ingest.providers.sse import SSEDecoder

logger = get_logger(__name__)

CONNECTED_EVENT = "connected"
LIVE_EVENTS = frozenset({"live"})


class SSELiveChannel(LiveChannel):
    """Push channel over a streaming GET with automatic reconnect."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        settings: Settings | None = None,
    ) -> None:
        self._client = client
        self._path = path
        self._settings = settings or get_settings()
        self._closed = asyncio.Event()
        self._response: Optional[httpx.Response] = None
        self._last_event_id: Optional[str] = None
        self._server_retry_s: Optional[float] = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _next_delay(self, failures: int) -> float:
        base = self._server_retry_s or self._settings.reconnect_initial_delay_s
        delay = min(base * (2 ** max(failures - 1, 0)), self._settings.reconnect_max_delay_s)
        jitter = delay * self._settings.reconnect_jitter_factor
        return max(0.0, delay + random.uniform(-jitter, jitter))

    async def signals(self) -> AsyncIterator[ChannelSignal]:
        failures = 0
        while not self.closed:
            error = "stream_ended"
            try:
                async with aclosing(self._read_stream()) as stream:
                    async for signal in stream:
                        failures = 0
                        yield signal
            except (httpx.HTTPError, httpx.StreamError, TransportError) as exc:
                error = str(exc) or type(exc).__name__

            if self.closed:
                break

            failures += 1
            delay = self._next_delay(failures)
            CHANNEL_RECONNECTS.inc()
            logger.warning(
                "live_channel_reconnect",
                path=self._path,
                error=error,
                failures=failures,
                delay_s=round(delay, 2),
            )
            yield ChannelSignal.failed(error)

            try:
                await asyncio.wait_for(self._closed.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    async def _read_stream(self) -> AsyncIterator[ChannelSignal]:
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        if self._last_event_id:
            headers["Last-Event-ID"] = self._last_event_id

        timeout = httpx.Timeout(self._settings.request_timeout_s, read=None)
        async with self._client.stream("GET", self._path, headers=headers, timeout=timeout) as resp:
            self._response = resp
            try:
                if resp.status_code != 200:
                    raise TransportError("live", f"HTTP {resp.status_code}", resp.status_code)

                decoder = SSEDecoder()
                async for line in resp.aiter_lines():
                    event = decoder.decode(line)
                    if event is None:
                        continue
                    self._last_event_id = decoder.last_event_id
                    if event.retry_ms is not None:
                        self._server_retry_s = event.retry_ms / 1000
                    if event.event == CONNECTED_EVENT:
                        yield ChannelSignal.connected()
                    elif event.event in LIVE_EVENTS and event.data:
                        yield ChannelSignal.message(event.data)
            finally:
                self._response = None

    async def aclose(self) -> None:
        self._closed.set()
        if self._response is not None:
            await self._response.aclose()


class HttpFeedProvider(FeedProvider):
    """FeedProvider backed by the feed's HTTP endpoints."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: FeedHTTPClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http = http_client or FeedHTTPClient(
            base_url=self._settings.feed_base_url,
            timeout_s=self._settings.request_timeout_s,
            max_attempts=self._settings.http_max_attempts,
        )

    async def start(self) -> None:
        await self._http.start()

    async def close(self) -> None:
        await self._http.close()

    async def fetch_snapshot(self) -> Any:
        return await self._http.get_json(self._settings.snapshot_path, endpoint="snapshot")

    async def fetch_standings(self, competition_id: str) -> Any:
        path = self._settings.standings_path.format(competition_id=quote(competition_id, safe=""))
        return await self._http.get_json(path, endpoint="standings")

    def open_live_channel(self) -> LiveChannel:
        return SSELiveChannel(self._http.client, self._settings.live_path, self._settings)
