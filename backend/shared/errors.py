"""Error taxonomy for the feed layer. An empty result is not an error."""
from __future__ import annotations

from typing import Optional


class LiveBoardError(Exception):
    """Base class for feed-layer failures."""


class TransportError(LiveBoardError):
    """Network failure or non-success HTTP response from the upstream feed."""

    def __init__(self, endpoint: str, message: str, status_code: Optional[int] = None) -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class ParseError(LiveBoardError):
    """Malformed push message or payload that cannot be read as expected."""
