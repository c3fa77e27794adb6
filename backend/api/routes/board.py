"""
Live board REST endpoints.

GET /v1/board                                   : Connection state + matches grouped by competition.
GET /v1/board/matches/{match_id}/timeline       : Deduped timeline of one match, split by side.
GET /v1/competitions/{competition_id}/standings : Standings table (retries empty tables).
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.board import LiveBoard
from api.dependencies import get_board, get_provider
from api.standings import StandingsLoader
from builder.timeline.dedup import TimelineBuilder, build_timeline, partition_by_side
from ingest.normalization.normalizer import is_upcoming, match_status_display, score_display
from ingest.providers.base import FeedProvider
from shared.models.domain import CompetitionRef, MatchState, StandingsView, TimelineView
from shared.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/v1", tags=["board"])


def _match_payload(match: MatchState, timeline: TimelineBuilder) -> dict[str, Any]:
    return {
        "id": match.id,
        "status": match.status,
        "status_display": match_status_display(match),
        "score_display": score_display(match),
        "upcoming": is_upcoming(match.status),
        "scheduled_time": match.scheduled_time,
        "clock_minute": match.clock_minute,
        "home_team": match.home_team.model_dump(),
        "away_team": match.away_team.model_dump(),
        "timeline": timeline.build(match).model_dump(),
    }


@router.get("/board")
async def board_view(board: LiveBoard = Depends(get_board)) -> dict[str, Any]:
    """
    Current board: connection state plus every competition group, each with
    display-ready status/score text and the filtered timeline per match.
    """
    view = board.view()
    timeline = TimelineBuilder.from_settings()
    return {
        "connection_state": view.connection_state.value,
        "connected": view.connected,
        "match_count": view.match_count,
        "competitions": [
            {
                "key": group.key,
                "competition": group.competition.model_dump(),
                "matches": [_match_payload(m, timeline) for m in group.matches],
            }
            for group in view.groups
        ],
    }


@router.get("/board/matches/{match_id}/timeline", response_model=TimelineView)
async def match_timeline(
    match_id: str,
    limit: Optional[int] = Query(default=None, ge=1),
    unfiltered: bool = Query(default=False, description="Skip the display filter, keep dedup/sort"),
    board: LiveBoard = Depends(get_board),
) -> TimelineView:
    match = board.get_match(match_id)
    if match is None:
        logger.debug("timeline_match_not_found", match_id=match_id)
        raise HTTPException(status_code=404, detail="Match not found")
    if unfiltered:
        return build_timeline(match, limit=limit)
    builder = TimelineBuilder.from_settings()
    events = builder.events(match)
    return partition_by_side(events[:limit] if limit is not None else events)


@router.get("/competitions/{competition_id}/standings", response_model=StandingsView)
async def competition_standings(
    competition_id: str,
    provider: FeedProvider = Depends(get_provider),
) -> StandingsView:
    """Standings rows for one competition; `status` is `error` when the feed failed."""
    loader = StandingsLoader(provider)
    try:
        return await loader.load(CompetitionRef(id=competition_id))
    finally:
        await loader.close()
