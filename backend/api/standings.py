"""
Standings request lifecycle for the selected competition.

Selecting a competition starts a fetch; an empty table is retried a bounded
number of times (tables are often empty for a moment right after a
competition is loaded upstream). A transport failure ends in the error
state without retrying. Each selection bumps a generation counter, and
every state mutation first checks that it still belongs to the current one.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional

from builder.standings.extractor import table_rows_from_payload
from ingest.providers.base import FeedProvider
from shared.config import Settings, get_settings
from shared.errors import LiveBoardError
from shared.models.domain import CompetitionRef, StandingsRow, StandingsView
from shared.models.enums import STANDINGS_ERROR_MESSAGE, StandingsStatus
from shared.utils.logging import get_logger
from shared.utils.metrics import STANDINGS_ATTEMPTS

logger = get_logger(__name__)

StandingsSubscriber = Callable[[StandingsView], None]


class StandingsLoader:
    def __init__(
        self,
        provider: FeedProvider,
        settings: Settings | None = None,
        retry_delay_s: float | None = None,
        max_retries: int | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._provider = provider
        self._retry_delay_s = (
            retry_delay_s if retry_delay_s is not None else settings.standings_retry_delay_s
        )
        self._max_retries = max_retries if max_retries is not None else settings.standings_max_retries
        self._view = StandingsView()
        self._generation = 0
        self._task: Optional[asyncio.Task[None]] = None
        self._subscribers: list[StandingsSubscriber] = []

    @property
    def view(self) -> StandingsView:
        return self._view

    @property
    def status(self) -> StandingsStatus:
        return self._view.status

    @property
    def rows(self) -> list[StandingsRow]:
        return list(self._view.rows)

    def subscribe(self, callback: StandingsSubscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def select(self, competition: Optional[CompetitionRef]) -> None:
        """
        Change the selected competition.

        None clears the selection. Any pending retry or in-flight fetch of the
        previous selection is cancelled and can no longer touch the state.
        """
        self._generation += 1
        self._cancel_pending()

        if competition is None:
            self._set(StandingsView())
            return

        if not competition.id:
            logger.info("standings_no_competition_id", name=competition.name)
            self._set(StandingsView(
                status=StandingsStatus.ERROR,
                competition=competition,
                error=STANDINGS_ERROR_MESSAGE,
            ))
            return

        self._set(StandingsView(status=StandingsStatus.LOADING, competition=competition))
        self._task = asyncio.create_task(
            self._load(competition, competition.id, self._generation),
            name=f"standings-{competition.id}",
        )

    async def load(self, competition: Optional[CompetitionRef]) -> StandingsView:
        """Select a competition and wait for the lifecycle to settle."""
        self.select(competition)
        return await self.wait()

    async def wait(self) -> StandingsView:
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self._view

    async def close(self) -> None:
        self._generation += 1
        task = self._task
        self._cancel_pending()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._subscribers.clear()

    async def _load(self, competition: CompetitionRef, competition_id: str, generation: int) -> None:
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                payload = await self._provider.fetch_standings(competition_id)
            except LiveBoardError as exc:
                if generation != self._generation:
                    return
                STANDINGS_ATTEMPTS.labels(outcome="failed").inc()
                logger.warning(
                    "standings_fetch_failed",
                    competition_id=competition_id,
                    attempt=attempt,
                    error=str(exc),
                )
                self._set(StandingsView(
                    status=StandingsStatus.ERROR,
                    competition=competition,
                    error=STANDINGS_ERROR_MESSAGE,
                ))
                return

            if generation != self._generation:
                return

            rows = table_rows_from_payload(payload)
            if rows or attempt == attempts:
                STANDINGS_ATTEMPTS.labels(outcome="rows" if rows else "empty").inc()
                logger.info(
                    "standings_loaded",
                    competition_id=competition_id,
                    rows=len(rows),
                    attempt=attempt,
                )
                self._set(StandingsView(
                    status=StandingsStatus.IDLE,
                    competition=competition,
                    rows=rows,
                ))
                return

            STANDINGS_ATTEMPTS.labels(outcome="retry").inc()
            logger.info(
                "standings_retry_scheduled",
                competition_id=competition_id,
                attempt=attempt,
                delay_s=self._retry_delay_s,
            )
            await asyncio.sleep(self._retry_delay_s)
            if generation != self._generation:
                return

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _set(self, view: StandingsView) -> None:
        self._view = view
        for callback in list(self._subscribers):
            try:
                callback(view)
            except Exception as exc:
                logger.exception("standings_subscriber_error", error=str(exc))
