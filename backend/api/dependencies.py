"""
Dependency injection for the API service.
Provides the live board and the feed provider to route handlers.
"""
from __future__ import annotations

from api.board import LiveBoard
from ingest.providers.base import FeedProvider

# Module-level singletons, initialized at startup
_board: LiveBoard | None = None
_provider: FeedProvider | None = None


def init_dependencies(board: LiveBoard, provider: FeedProvider) -> None:
    """Initialize module-level singletons. Called once at startup."""
    global _board, _provider
    _board = board
    _provider = provider


def get_board() -> LiveBoard:
    """FastAPI dependency: returns the shared LiveBoard."""
    if _board is None:
        raise RuntimeError("LiveBoard not initialized; call init_dependencies first")
    return _board


def get_provider() -> FeedProvider:
    """FastAPI dependency: returns the shared FeedProvider."""
    if _provider is None:
        raise RuntimeError("FeedProvider not initialized; call init_dependencies first")
    return _provider
