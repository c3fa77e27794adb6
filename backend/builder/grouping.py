"""Per-competition grouping of the live board."""
from __future__ import annotations

from typing import Iterable

from shared.models.domain import CompetitionGroup, CompetitionRef, MatchState
from shared.models.enums import OTHER_COMPETITION_LABEL


def competition_key(match: MatchState) -> str:
    """Grouping key: competition id, else its name, else the fallback label."""
    comp = match.competition
    if comp is not None and comp.id is not None:
        return comp.id
    if comp is not None and comp.name is not None:
        return comp.name
    return OTHER_COMPETITION_LABEL


def group_by_competition(matches: Iterable[MatchState]) -> list[CompetitionGroup]:
    """
    Group matches by competition.

    Groups appear in first-seen order and keep the first-seen competition
    metadata. Matches inside a group are sorted by scheduled time (plain string
    order, missing times first); equal times keep their input order.
    """
    groups: dict[str, CompetitionGroup] = {}
    for match in matches:
        key = competition_key(match)
        group = groups.get(key)
        if group is None:
            comp = match.competition or CompetitionRef()
            group = CompetitionGroup(
                key=key,
                competition=CompetitionRef(
                    id=comp.id,
                    name=comp.name if comp.name is not None else OTHER_COMPETITION_LABEL,
                    country=comp.country,
                ),
            )
            groups[key] = group
        group.matches.append(match)

    for group in groups.values():
        group.matches.sort(key=lambda m: m.scheduled_time or "")
    return list(groups.values())
