"""Tests for per-competition grouping of the board."""
from __future__ import annotations

from builder.grouping import competition_key, group_by_competition
from shared.models.domain import MatchState


def _match(mid: str, comp: dict | None, scheduled: str | None = None) -> MatchState:
    return MatchState.model_validate({"id": mid, "competition": comp, "scheduled": scheduled})


def test_key_prefers_id_then_name_then_other() -> None:
    assert competition_key(_match("1", {"id": 3, "name": "Serie A"})) == "3"
    assert competition_key(_match("2", {"name": "Serie A"})) == "Serie A"
    assert competition_key(_match("3", None)) == "Other"
    assert competition_key(_match("4", {"country": "Italy"})) == "Other"


def test_id_and_name_are_not_unified() -> None:
    groups = group_by_competition([
        _match("1", {"id": "1", "name": "Ligue 1"}),
        _match("2", {"name": "Ligue 1"}),
    ])
    assert [g.key for g in groups] == ["1", "Ligue 1"]


def test_groups_in_first_seen_order_with_first_seen_metadata() -> None:
    groups = group_by_competition([
        _match("a", {"id": "7", "name": "Premier League", "country": "England"}),
        _match("b", {"id": "9", "name": "LaLiga"}),
        _match("c", {"id": "7", "name": "EPL", "country": "UK"}),
    ])
    assert [g.key for g in groups] == ["7", "9"]
    assert groups[0].competition.name == "Premier League"
    assert groups[0].competition.country == "England"
    assert [m.id for m in groups[0].matches] == ["a", "c"]


def test_missing_competition_goes_to_other() -> None:
    groups = group_by_competition([_match("x", None), _match("y", {})])
    assert len(groups) == 1
    assert groups[0].key == "Other"
    assert groups[0].competition.name == "Other"
    assert groups[0].competition.id is None


def test_matches_sorted_by_scheduled_time_missing_first() -> None:
    groups = group_by_competition([
        _match("late", {"id": "1"}, "21:00"),
        _match("none", {"id": "1"}),
        _match("early", {"id": "1"}, "13:30"),
        _match("early2", {"id": "1"}, "13:30"),
    ])
    assert [m.id for m in groups[0].matches] == ["none", "early", "early2", "late"]


def test_string_ordering_is_ordinal() -> None:
    groups = group_by_competition([
        _match("nine", {"id": "1"}, "9:00"),
        _match("ten", {"id": "1"}, "10:00"),
    ])
    assert [m.id for m in groups[0].matches] == ["ten", "nine"]


def test_empty_board() -> None:
    assert group_by_competition([]) == []
