"""
Abstract feed boundary consumed by the Live Board core.
Defines the contract every transport adapter must implement.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from shared.models.enums import SignalType


@dataclass(frozen=True)
class ChannelSignal:
    """One delivery from a live push channel."""
    type: SignalType
    data: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def connected(cls) -> "ChannelSignal":
        return cls(SignalType.CONNECTED)

    @classmethod
    def message(cls, data: str) -> "ChannelSignal":
        return cls(SignalType.MESSAGE, data=data)

    @classmethod
    def failed(cls, error: str) -> "ChannelSignal":
        return cls(SignalType.ERROR, error=error)


class LiveChannel(abc.ABC):
    """
    Long-lived push subscription.

    Iterating yields CONNECTED, MESSAGE (serialized full match array) and ERROR
    signals. Reconnecting after an ERROR is the channel's own job; iteration
    ends only after aclose().
    """

    def __aiter__(self) -> AsyncIterator[ChannelSignal]:
        return self.signals()

    @abc.abstractmethod
    def signals(self) -> AsyncIterator[ChannelSignal]:
        ...

    @abc.abstractmethod
    async def aclose(self) -> None:
        ...


class FeedProvider(abc.ABC):
    """
    Source of match snapshots, push updates and standings payloads.

    fetch_snapshot and fetch_standings raise TransportError on network failure
    or a non-success response, and ParseError when the body is not JSON.
    """

    async def start(self) -> None:
        """Acquire transport resources."""

    async def close(self) -> None:
        """Release transport resources."""

    @abc.abstractmethod
    async def fetch_snapshot(self) -> Any:
        """Full current match list as decoded JSON."""
        ...

    @abc.abstractmethod
    def open_live_channel(self) -> LiveChannel:
        ...

    @abc.abstractmethod
    async def fetch_standings(self, competition_id: str) -> Any:
        """Raw standings payload for one competition, in any supported shape."""
        ...
