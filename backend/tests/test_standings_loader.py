"""
Tests for the standings request lifecycle: retry-on-empty, transport failures,
and cancellation when the selected competition changes.
"""
from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.standings import StandingsLoader
from ingest.providers.base import FeedProvider
from shared.errors import ParseError, TransportError
from shared.models.domain import CompetitionRef
from shared.models.enums import STANDINGS_ERROR_MESSAGE, StandingsStatus

ROWS = [{"rank": 1, "team": {"name": "Arsenal"}, "points": 30}]


def _provider(*results: Any) -> MagicMock:
    provider = MagicMock(spec=FeedProvider)
    provider.fetch_standings = AsyncMock(side_effect=list(results))
    return provider


def _loader(provider: Any, retry_delay_s: float = 0.0) -> StandingsLoader:
    return StandingsLoader(provider, retry_delay_s=retry_delay_s, max_retries=2)


class _GatedProvider(FeedProvider):
    """Competition "slow" blocks until released; everything else answers at once."""

    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.calls: list[str] = []

    async def fetch_snapshot(self) -> Any:
        return []

    def open_live_channel(self):
        raise NotImplementedError

    async def fetch_standings(self, competition_id: str) -> Any:
        self.calls.append(competition_id)
        if competition_id == "slow":
            await self.gate.wait()
            return [{"team": {"name": "Slow FC"}}]
        return [{"team": {"name": "Fast FC"}}]


@pytest.mark.asyncio
async def test_rows_on_first_attempt() -> None:
    provider = _provider(ROWS)
    view = await _loader(provider).load(CompetitionRef(id="39", name="Premier League"))

    assert view.status == StandingsStatus.IDLE
    assert [r.team for r in view.rows] == ["Arsenal"]
    assert view.competition.id == "39"
    provider.fetch_standings.assert_awaited_once_with("39")


@pytest.mark.asyncio
async def test_empty_twice_then_rows_on_third_attempt() -> None:
    provider = _provider([], {"table": []}, {"table": ROWS})
    view = await _loader(provider).load(CompetitionRef(id="39"))

    assert view.status == StandingsStatus.IDLE
    assert [r.points for r in view.rows] == ["30pts"]
    assert provider.fetch_standings.await_count == 3


@pytest.mark.asyncio
async def test_empty_on_every_attempt_is_final_not_error() -> None:
    provider = _provider([], [], [], ROWS)
    view = await _loader(provider).load(CompetitionRef(id="39"))

    assert view.status == StandingsStatus.IDLE
    assert view.rows == []
    assert view.error is None
    assert provider.fetch_standings.await_count == 3


@pytest.mark.asyncio
async def test_transport_error_stops_retrying() -> None:
    provider = _provider([], TransportError("standings", "HTTP 503", 503), ROWS)
    view = await _loader(provider).load(CompetitionRef(id="39"))

    assert view.status == StandingsStatus.ERROR
    assert view.error == STANDINGS_ERROR_MESSAGE
    assert view.rows == []
    assert provider.fetch_standings.await_count == 2


@pytest.mark.asyncio
async def test_parse_error_surfaces_as_error() -> None:
    provider = _provider(ParseError("standings: response is not JSON"))
    view = await _loader(provider).load(CompetitionRef(id="39"))
    assert view.status == StandingsStatus.ERROR


@pytest.mark.asyncio
async def test_competition_without_id_errors_without_request() -> None:
    provider = _provider(ROWS)
    view = await _loader(provider).load(CompetitionRef(name="Friendlies"))

    assert view.status == StandingsStatus.ERROR
    assert view.competition.name == "Friendlies"
    provider.fetch_standings.assert_not_called()


@pytest.mark.asyncio
async def test_clearing_selection_resets_to_idle() -> None:
    loader = _loader(_provider(ROWS))
    await loader.load(CompetitionRef(id="39"))
    assert loader.rows

    view = await loader.load(None)
    assert view.status == StandingsStatus.IDLE
    assert view.rows == []
    assert view.competition is None


@pytest.mark.asyncio
async def test_loading_is_published_before_result() -> None:
    loader = _loader(_provider([], ROWS))
    seen: list[StandingsStatus] = []
    loader.subscribe(lambda v: seen.append(v.status))

    await loader.load(CompetitionRef(id="39"))
    assert seen == [StandingsStatus.LOADING, StandingsStatus.IDLE]


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications() -> None:
    loader = _loader(_provider(ROWS))
    seen: list[StandingsStatus] = []
    unsubscribe = loader.subscribe(lambda v: seen.append(v.status))
    unsubscribe()

    await loader.load(CompetitionRef(id="39"))
    assert seen == []


@pytest.mark.asyncio
async def test_reselect_discards_in_flight_result() -> None:
    provider = _GatedProvider()
    loader = _loader(provider)

    loader.select(CompetitionRef(id="slow"))
    await asyncio.sleep(0)
    loader.select(CompetitionRef(id="fast"))
    view = await loader.wait()

    provider.gate.set()
    await asyncio.sleep(0)

    assert provider.calls == ["slow", "fast"]
    assert loader.view is view
    assert view.competition.id == "fast"
    assert [r.team for r in loader.rows] == ["Fast FC"]


@pytest.mark.asyncio
async def test_reselect_cancels_pending_retry() -> None:
    provider = _provider([], ROWS)
    loader = _loader(provider, retry_delay_s=0.05)

    loader.select(CompetitionRef(id="39"))
    await asyncio.sleep(0.01)
    assert loader.status == StandingsStatus.LOADING

    loader.select(None)
    await asyncio.sleep(0.1)

    assert provider.fetch_standings.await_count == 1
    assert loader.status == StandingsStatus.IDLE
    assert loader.rows == []


@pytest.mark.asyncio
async def test_close_prevents_further_updates() -> None:
    provider = _GatedProvider()
    loader = _loader(provider)
    loader.select(CompetitionRef(id="slow"))
    await asyncio.sleep(0)

    await loader.close()
    provider.gate.set()
    await asyncio.sleep(0)

    assert loader.status == StandingsStatus.LOADING
    assert loader.rows == []
