"""Domain enumerations and display constants for the Live Board."""
from __future__ import annotations

from enum import Enum


class MatchStatus(str, Enum):
    """Status vocabulary sent by the upstream feed. Unknown strings pass through."""
    NOT_STARTED = "NOT STARTED"
    SCHEDULED = "SCHEDULED"
    IN_PLAY = "IN PLAY"
    ADDED_TIME = "ADDED TIME"
    HALF_TIME_BREAK = "HALF TIME BREAK"
    FINISHED = "FINISHED"


UPCOMING_STATUSES = frozenset({MatchStatus.NOT_STARTED.value, MatchStatus.SCHEDULED.value})
LIVE_STATUSES = frozenset({MatchStatus.IN_PLAY.value, MatchStatus.ADDED_TIME.value})


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class StandingsStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


class Side(str, Enum):
    HOME = "home"
    AWAY = "away"
    UNKNOWN = "unknown"


class EventKind(str, Enum):
    GOAL = "goal"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    MISSED_PENALTY = "missed_penalty"
    SUBSTITUTION = "substitution"
    OTHER = "other"


class SignalType(str, Enum):
    """Signals emitted by a live push channel."""
    CONNECTED = "connected"
    MESSAGE = "message"
    ERROR = "error"


# ── Display placeholders ────────────────────────────────────────────────
NO_TIME_PLACEHOLDER = "--:--"
IN_PROGRESS_PLACEHOLDER = "LIVE"
HALF_TIME_PLACEHOLDER = "HT"
FINISHED_PLACEHOLDER = "FT"
UPCOMING_PLACEHOLDER = "UPCOMING"
DEFAULT_SCORE_TEXT = "0 : 0"
MINUTE_MARK = "'"

MISSING_VALUE_PLACEHOLDER = "--"
TEAM_NAME_PLACEHOLDER = "Team"
OTHER_COMPETITION_LABEL = "Other"
STANDINGS_ERROR_MESSAGE = "Standings are unavailable for this competition."
