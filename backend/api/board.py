"""
Live board aggregator.

Owns the feed connection lifecycle and the latest full match array:
- Cold start: one snapshot fetch so something shows before the first push.
- Push channel: every message carries the whole array and replaces the
  current one; unparseable messages are dropped.
- Connection state only mirrors what the channel reports; reconnecting is the
  channel's job.
- After stop(), nothing a late task or delivery does reaches observed state.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from pydantic import TypeAdapter, ValidationError

from builder.grouping import group_by_competition
from ingest.providers.base import ChannelSignal, FeedProvider, LiveChannel
from shared.errors import LiveBoardError, ParseError
from shared.models.domain import BoardView, CompetitionGroup, MatchState
from shared.models.enums import ConnectionState, SignalType
from shared.utils.logging import get_logger
from shared.utils.metrics import (
    CHANNEL_CONNECTED,
    PUSH_MESSAGES,
    SNAPSHOT_FETCHES,
    TRACKED_MATCHES,
)

logger = get_logger(__name__)

BoardSubscriber = Callable[[BoardView], None]

_MATCH_LIST = TypeAdapter(list[MatchState])


def parse_match_array(payload: Any) -> list[MatchState]:
    """Validate an already-decoded match array."""
    if not isinstance(payload, list):
        raise ParseError(f"expected a match array, got {type(payload).__name__}")
    try:
        return _MATCH_LIST.validate_python(payload)
    except ValidationError as exc:
        raise ParseError(f"invalid match array: {exc.error_count()} errors") from exc


def decode_push_message(raw: Optional[str]) -> list[MatchState]:
    """Decode a serialized push payload into the full match array."""
    if not raw:
        raise ParseError("empty push message")
    try:
        return _MATCH_LIST.validate_json(raw)
    except ValidationError as exc:
        raise ParseError(f"invalid push message: {exc.error_count()} errors") from exc


class LiveBoard:
    """
    Single owner of the live match array and connection state.

    Consumers read view() or subscribe() for a BoardView after every change.
    """

    def __init__(self, provider: FeedProvider) -> None:
        self._provider = provider
        self._matches: list[MatchState] = []
        self._groups: list[CompetitionGroup] = []
        self._state = ConnectionState.DISCONNECTED
        self._subscribers: list[BoardSubscriber] = []
        self._channel: Optional[LiveChannel] = None
        self._tasks: list[asyncio.Task[None]] = []
        self._started = False
        self._closed = False
        self._push_applied = False

    # ── Observed state ──────────────────────────────────────────────────

    @property
    def connection_state(self) -> ConnectionState:
        return self._state

    @property
    def matches(self) -> list[MatchState]:
        return list(self._matches)

    @property
    def closed(self) -> bool:
        return self._closed

    def view(self) -> BoardView:
        return BoardView(connection_state=self._state, groups=list(self._groups))

    def get_match(self, match_id: str) -> Optional[MatchState]:
        for match in self._matches:
            if match.id == match_id:
                return match
        return None

    def subscribe(self, callback: BoardSubscriber) -> Callable[[], None]:
        """Register a change callback; returns the matching unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ── Lifecycle ───────────────────────────────────────────────────────

    async def start(self) -> None:
        """Kick off the snapshot fetch and the push channel."""
        if self._started:
            raise RuntimeError("LiveBoard already started")
        self._started = True
        self._tasks = [
            asyncio.create_task(self._load_snapshot(), name="board-snapshot"),
            asyncio.create_task(self._run_channel(), name="board-channel"),
        ]
        logger.info("board_started")

    async def stop(self) -> None:
        """Tear down: no state change is applied after this returns."""
        if self._closed:
            return
        self._closed = True
        for task in self._tasks:
            task.cancel()
        if self._channel is not None:
            await self._channel.aclose()
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, result in zip(self._tasks, results):
            if isinstance(result, Exception):
                logger.warning("board_task_failed", task=task.get_name(), error=str(result))
        self._subscribers.clear()
        CHANNEL_CONNECTED.set(0)
        logger.info("board_stopped", matches=len(self._matches))

    # ── Inputs ──────────────────────────────────────────────────────────

    def apply_snapshot(self, payload: Any) -> bool:
        """
        Apply a cold-start snapshot. A non-list payload counts as an empty
        board; a snapshot arriving after a push message is stale and ignored.
        """
        if self._closed:
            return False
        if self._push_applied:
            SNAPSHOT_FETCHES.labels(outcome="superseded").inc()
            logger.debug("snapshot_superseded_by_push")
            return False
        try:
            matches = parse_match_array(payload if isinstance(payload, list) else [])
        except ParseError as exc:
            SNAPSHOT_FETCHES.labels(outcome="invalid").inc()
            logger.warning("snapshot_invalid", error=str(exc))
            return False
        SNAPSHOT_FETCHES.labels(outcome="applied").inc()
        self._replace(matches)
        return True

    def handle_signal(self, signal: ChannelSignal) -> None:
        """Apply one push channel delivery."""
        if self._closed:
            logger.debug("signal_after_teardown", type=signal.type.value)
            return

        if signal.type == SignalType.CONNECTED:
            self._set_state(ConnectionState.CONNECTED)
        elif signal.type == SignalType.MESSAGE:
            try:
                matches = decode_push_message(signal.data)
            except ParseError as exc:
                PUSH_MESSAGES.labels(outcome="dropped").inc()
                logger.debug("push_message_dropped", error=str(exc))
                return
            PUSH_MESSAGES.labels(outcome="applied").inc()
            self._push_applied = True
            self._replace(matches, state=ConnectionState.CONNECTED)
        elif signal.type == SignalType.ERROR:
            self._set_state(ConnectionState.DISCONNECTED)

    # ── Internals ───────────────────────────────────────────────────────

    async def _load_snapshot(self) -> None:
        try:
            payload = await self._provider.fetch_snapshot()
        except LiveBoardError as exc:
            SNAPSHOT_FETCHES.labels(outcome="failed").inc()
            logger.warning("snapshot_fetch_failed", error=str(exc))
            return
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            SNAPSHOT_FETCHES.labels(outcome="failed").inc()
            logger.exception("snapshot_fetch_error", error=str(exc))
            return
        self.apply_snapshot(payload)

    async def _run_channel(self) -> None:
        self._channel = self._provider.open_live_channel()
        try:
            async for signal in self._channel:
                if self._closed:
                    break
                self.handle_signal(signal)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("live_channel_failed", error=str(exc))
            if not self._closed:
                self._set_state(ConnectionState.DISCONNECTED)

    def _replace(self, matches: list[MatchState], state: Optional[ConnectionState] = None) -> None:
        self._matches = matches
        self._groups = group_by_competition(matches)
        if state is not None:
            self._state = state
            CHANNEL_CONNECTED.set(1 if state == ConnectionState.CONNECTED else 0)
        TRACKED_MATCHES.set(len(matches))
        logger.debug(
            "board_replaced",
            matches=len(matches),
            competitions=len(self._groups),
            state=self._state.value,
        )
        self._notify()

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        self._state = state
        CHANNEL_CONNECTED.set(1 if state == ConnectionState.CONNECTED else 0)
        logger.info("board_connection_state", state=state.value)
        self._notify()

    def _notify(self) -> None:
        if not self._subscribers:
            return
        view = self.view()
        for callback in list(self._subscribers):
            try:
                callback(view)
            except Exception as exc:
                logger.exception("board_subscriber_error", error=str(exc))
