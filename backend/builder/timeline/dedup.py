"""
Timeline deduplication for Live Board matches.

Upstream timelines repeat the same real-world event with small differences
(casing of the player name, "45+2" vs "45+2'", re-sent entries). Events are
collapsed on a normalized key, ordered most recent first and split by side.
"""
from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from ingest.normalization.normalizer import (
    minute_key,
    normalize_casefold,
    normalize_event_kind,
    normalize_player_name,
    parse_minute,
    resolve_side,
)
from shared.config import Settings, get_settings
from shared.models.domain import MatchEvent, MatchState, TimelineView
from shared.models.enums import Side

# Returns True when the event must be dropped
ExclusionPredicate = Callable[[MatchEvent], bool]


# ── Exclusion predicates ────────────────────────────────────────────────

def exclude_kinds(*fragments: str) -> ExclusionPredicate:
    """Drop events whose normalized kind contains any of the fragments."""
    wanted = tuple(normalize_event_kind(f) for f in fragments if f)

    def predicate(event: MatchEvent) -> bool:
        kind = normalize_event_kind(event.kind)
        return any(fragment in kind for fragment in wanted)

    return predicate


def require_player(event: MatchEvent) -> bool:
    """Drop events without a usable player name."""
    return not normalize_player_name(event.player)


def require_minute(event: MatchEvent) -> bool:
    """Drop events with an empty minute."""
    return not (event.minute_raw or "").strip()


def any_of(*predicates: ExclusionPredicate) -> ExclusionPredicate:
    def predicate(event: MatchEvent) -> bool:
        return any(p(event) for p in predicates)

    return predicate


def display_policy(
    kind_fragments: Sequence[str] = ("SUB", "YELLOW"),
    player_required: bool = True,
) -> ExclusionPredicate:
    """The board's default timeline filter."""
    predicates: list[ExclusionPredicate] = []
    if kind_fragments:
        predicates.append(exclude_kinds(*kind_fragments))
    if player_required:
        predicates.append(require_player)
    return any_of(*predicates)


# ── Dedup / sort ────────────────────────────────────────────────────────

def event_key(event: MatchEvent) -> str:
    """Identity of the real-world event: upstream id, else the normalized tuple."""
    if event.id and event.id.strip():
        return event.id
    return "|".join((
        normalize_casefold(event.side),
        minute_key(event.minute_raw),
        normalize_event_kind(event.kind),
        normalize_player_name(event.player),
    ))


def dedupe_events(
    events: Iterable[MatchEvent],
    exclude: Optional[ExclusionPredicate] = None,
    limit: Optional[int] = None,
) -> list[MatchEvent]:
    """
    Filter, collapse duplicates (first seen wins) and sort most recent first.

    Args:
        events: Raw timeline as received.
        exclude: Events for which this returns True are dropped before keying.
        limit: Keep only the first N events after sorting.

    Returns:
        Events in non-increasing minute order; ties keep their input order.
    """
    seen: set[str] = set()
    kept: list[MatchEvent] = []
    for event in events:
        if exclude is not None and exclude(event):
            continue
        key = event_key(event)
        if key in seen:
            continue
        seen.add(key)
        kept.append(event)

    kept.sort(key=lambda e: parse_minute(e.minute_raw), reverse=True)
    if limit is not None:
        kept = kept[:limit]
    return kept


def partition_by_side(events: Iterable[MatchEvent]) -> TimelineView:
    view = TimelineView()
    buckets = {Side.HOME: view.home, Side.AWAY: view.away, Side.UNKNOWN: view.unknown}
    for event in events:
        buckets[resolve_side(event.side)].append(event)
    return view


def build_timeline(
    match: MatchState,
    exclude: Optional[ExclusionPredicate] = None,
    limit: Optional[int] = None,
) -> TimelineView:
    """Deduped, sorted and truncated timeline of one match, split by side."""
    return partition_by_side(dedupe_events(match.timeline, exclude, limit))


class TimelineBuilder:
    """Applies one exclusion/truncation policy to match timelines."""

    def __init__(
        self,
        exclude: Optional[ExclusionPredicate] = None,
        limit: Optional[int] = None,
    ) -> None:
        self._exclude = exclude
        self._limit = limit

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "TimelineBuilder":
        settings = settings or get_settings()
        return cls(
            exclude=display_policy(settings.timeline_exclude_kinds, settings.timeline_require_player),
            limit=settings.timeline_limit,
        )

    def events(self, match: MatchState) -> list[MatchEvent]:
        return dedupe_events(match.timeline, self._exclude, self._limit)

    def build(self, match: MatchState) -> TimelineView:
        return build_timeline(match, self._exclude, self._limit)
