"""
Normalization helpers for raw feed values.

The upstream feed is loosely typed: status strings, minute strings, event tags,
player names and side tags arrive in several spellings. Everything here is a
pure function so the timeline, grouping and standings code can compare values
without caring where they came from.
"""
from __future__ import annotations

import math
import re
from typing import Any, Optional

from shared.models.domain import MatchState, coerce_text
from shared.models.enums import (
    DEFAULT_SCORE_TEXT,
    FINISHED_PLACEHOLDER,
    HALF_TIME_PLACEHOLDER,
    IN_PROGRESS_PLACEHOLDER,
    LIVE_STATUSES,
    MINUTE_MARK,
    NO_TIME_PLACEHOLDER,
    UPCOMING_PLACEHOLDER,
    UPCOMING_STATUSES,
    EventKind,
    MatchStatus,
    Side,
)

# Sorts after every real minute
UNKNOWN_MINUTE = 999

_DIGIT_RUNS = re.compile(r"\d+")
# Anything that is not a letter, digit or whitespace (\w also admits "_")
_NAME_NOISE = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")

SIDE_ALIASES: dict[str, Side] = {
    "home": Side.HOME, "h": Side.HOME, "local": Side.HOME, "team1": Side.HOME,
    "away": Side.AWAY, "a": Side.AWAY, "visitor": Side.AWAY, "team2": Side.AWAY,
}

# First matching fragment wins
EVENT_KIND_FRAGMENTS: tuple[tuple[str, EventKind], ...] = (
    ("MISSED_PENALTY", EventKind.MISSED_PENALTY),
    ("GOAL", EventKind.GOAL),
    ("YELLOW", EventKind.YELLOW_CARD),
    ("RED", EventKind.RED_CARD),
    ("SUB", EventKind.SUBSTITUTION),
)


def _text(value: Any) -> str:
    return coerce_text(value) or ""


def normalize_casefold(value: Any) -> str:
    """Trimmed lowercase text, for loose side/name comparisons."""
    return _text(value).strip().lower()


def normalize_event_kind(value: Any) -> str:
    """Trimmed uppercase text, the canonical form for kind substring checks."""
    return _text(value).strip().upper()


def normalize_player_name(value: Any) -> str:
    """
    Stable comparison key for a player name.

    "J. Smith", "j smith" and "J.Smith" all become "j smith": periods and any
    other non letter/digit characters turn into separators, then whitespace
    runs collapse.
    """
    name = _text(value).lower().replace(".", " ")
    name = _NAME_NOISE.sub(" ", name)
    return _WHITESPACE.sub(" ", name).strip()


def parse_minute(value: Any) -> float:
    """
    Sortable minute for a free-text minute string.

    "12'" -> 12, "45+2" -> 45.2 (stoppage time sorts between 45 and 46),
    no digits -> UNKNOWN_MINUTE.
    """
    runs = _DIGIT_RUNS.findall(_text(value).replace(MINUTE_MARK, ""))
    if not runs:
        return UNKNOWN_MINUTE
    try:
        minute = float(int(runs[0]))
        if len(runs) > 1:
            minute += int(runs[1]) / 10
    except (OverflowError, ValueError):
        return UNKNOWN_MINUTE
    if not math.isfinite(minute):
        return UNKNOWN_MINUTE
    return minute


def minute_key(value: Any) -> str:
    """Text form of parse_minute used inside dedup keys."""
    minute = float(parse_minute(value))
    if minute.is_integer():
        return str(int(minute))
    return repr(minute)


def resolve_side(value: Any) -> Side:
    return SIDE_ALIASES.get(normalize_casefold(value), Side.UNKNOWN)


def classify_event_kind(value: Any) -> EventKind:
    kind = normalize_event_kind(value)
    for fragment, event_kind in EVENT_KIND_FRAGMENTS:
        if fragment in kind:
            return event_kind
    return EventKind.OTHER


def is_upcoming(status: Optional[str]) -> bool:
    return (status or "") in UPCOMING_STATUSES


def status_to_display(
    status: Optional[str],
    clock_minute: Optional[str] = None,
    scheduled_time: Optional[str] = None,
) -> str:
    """Short status label for a match. Total over every input."""
    if not status:
        return scheduled_time if scheduled_time is not None else NO_TIME_PLACEHOLDER
    if status in LIVE_STATUSES:
        return f"{clock_minute}{MINUTE_MARK}" if clock_minute else IN_PROGRESS_PLACEHOLDER
    if status == MatchStatus.HALF_TIME_BREAK.value:
        return HALF_TIME_PLACEHOLDER
    if status == MatchStatus.FINISHED.value:
        return FINISHED_PLACEHOLDER
    if status in UPCOMING_STATUSES:
        return scheduled_time if scheduled_time is not None else UPCOMING_PLACEHOLDER
    return status


def match_status_display(match: MatchState) -> str:
    return status_to_display(match.status, match.clock_minute, match.scheduled_time)


def score_display(match: MatchState) -> str:
    """Score box text: kickoff time for upcoming matches, else the score."""
    if is_upcoming(match.status):
        return match.scheduled_time if match.scheduled_time is not None else NO_TIME_PLACEHOLDER
    return match.score_text if match.score_text is not None else DEFAULT_SCORE_TEXT
