"""Tests for the feed value normalizers and status display mapping."""
from __future__ import annotations

import pytest

from ingest.normalization.normalizer import (
    UNKNOWN_MINUTE,
    classify_event_kind,
    is_upcoming,
    match_status_display,
    minute_key,
    normalize_event_kind,
    normalize_player_name,
    parse_minute,
    resolve_side,
    score_display,
    status_to_display,
)
from shared.models.domain import MatchState
from shared.models.enums import (
    DEFAULT_SCORE_TEXT,
    FINISHED_PLACEHOLDER,
    HALF_TIME_PLACEHOLDER,
    IN_PROGRESS_PLACEHOLDER,
    NO_TIME_PLACEHOLDER,
    UPCOMING_PLACEHOLDER,
    EventKind,
    Side,
)


class TestParseMinute:
    @pytest.mark.parametrize("raw,expected", [
        ("90", 90),
        ("12'", 12),
        ("45+2", 45.2),
        ("90+4'", 90.4),
        (" 7 ", 7),
        (67, 67),
    ])
    def test_known_formats(self, raw, expected) -> None:
        assert parse_minute(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "HT", "'", "+"])
    def test_no_digits_sorts_last(self, raw) -> None:
        assert parse_minute(raw) == UNKNOWN_MINUTE == 999

    def test_stoppage_sorts_between_regular_minutes(self) -> None:
        assert parse_minute("45") < parse_minute("45+2") < parse_minute("46")

    def test_huge_digit_run_does_not_raise(self) -> None:
        assert parse_minute("9" * 400) == UNKNOWN_MINUTE

    def test_minute_key_is_format_insensitive(self) -> None:
        assert minute_key("45+2") == minute_key("45+2'") == "45.2"
        assert minute_key("12'") == minute_key("12") == "12"

    def test_minute_key_keeps_large_minutes_distinct(self) -> None:
        assert minute_key("1234567") == "1234567"
        assert minute_key("1234567") != minute_key("1234568")


class TestPlayerName:
    @pytest.mark.parametrize("raw", ["J. Smith", "j smith", "J.Smith", "  J.  SMITH ", "j_smith"])
    def test_spellings_collapse(self, raw) -> None:
        assert normalize_player_name(raw) == "j smith"

    def test_missing_player_is_empty(self) -> None:
        assert normalize_player_name(None) == ""
        assert normalize_player_name("  . ") == ""

    def test_accented_letters_survive(self) -> None:
        assert normalize_player_name("Kylian Mbappé") == "kylian mbappé"


class TestSideAndKind:
    @pytest.mark.parametrize("raw,side", [
        ("home", Side.HOME), ("H", Side.HOME), ("Local", Side.HOME), ("team1", Side.HOME),
        ("away", Side.AWAY), ("a", Side.AWAY), ("VISITOR", Side.AWAY), ("team2", Side.AWAY),
        ("neutral", Side.UNKNOWN), (None, Side.UNKNOWN), ("", Side.UNKNOWN),
    ])
    def test_resolve_side(self, raw, side) -> None:
        assert resolve_side(raw) == side

    def test_event_kind_uppercased(self) -> None:
        assert normalize_event_kind("  goal ") == "GOAL"

    @pytest.mark.parametrize("raw,kind", [
        ("GOAL", EventKind.GOAL),
        ("goal_penalty", EventKind.GOAL),
        ("YELLOW_CARD", EventKind.YELLOW_CARD),
        ("red_card", EventKind.RED_CARD),
        ("SUBSTITUTION", EventKind.SUBSTITUTION),
        ("MISSED_PENALTY", EventKind.MISSED_PENALTY),
        ("VAR", EventKind.OTHER),
        (None, EventKind.OTHER),
    ])
    def test_classify(self, raw, kind) -> None:
        assert classify_event_kind(raw) == kind


class TestStatusDisplay:
    def test_absent_status_shows_scheduled_time(self) -> None:
        assert status_to_display(None, scheduled_time="18:00") == "18:00"

    def test_absent_status_without_time(self) -> None:
        assert status_to_display("") == NO_TIME_PLACEHOLDER

    def test_in_play_with_minute(self) -> None:
        assert status_to_display("IN PLAY", clock_minute="67") == "67'"

    def test_added_time_without_minute(self) -> None:
        assert status_to_display("ADDED TIME") == IN_PROGRESS_PLACEHOLDER

    def test_half_time(self) -> None:
        assert status_to_display("HALF TIME BREAK", clock_minute="45") == HALF_TIME_PLACEHOLDER

    def test_finished(self) -> None:
        assert status_to_display("FINISHED") == FINISHED_PLACEHOLDER

    def test_upcoming(self) -> None:
        assert status_to_display("NOT STARTED", scheduled_time="20:45") == "20:45"
        assert status_to_display("SCHEDULED") == UPCOMING_PLACEHOLDER

    def test_unknown_status_passes_through(self) -> None:
        assert status_to_display("POSTPONED", clock_minute="10") == "POSTPONED"

    def test_is_upcoming(self) -> None:
        assert is_upcoming("NOT STARTED")
        assert is_upcoming("SCHEDULED")
        assert not is_upcoming("IN PLAY")
        assert not is_upcoming(None)


class TestMatchDisplay:
    def test_wire_payload_renders(self) -> None:
        match = MatchState.model_validate({
            "id": 10,
            "status": "IN PLAY",
            "time": 34,
            "scores": {"score": "1 - 0"},
        })
        assert match_status_display(match) == "34'"
        assert score_display(match) == "1 - 0"

    def test_upcoming_match_shows_kickoff_instead_of_score(self) -> None:
        match = MatchState(status="SCHEDULED", scheduled_time="19:30", score_text="0 - 0")
        assert score_display(match) == "19:30"

    def test_upcoming_without_time(self) -> None:
        assert score_display(MatchState(status="NOT STARTED")) == NO_TIME_PLACEHOLDER

    def test_missing_score_defaults(self) -> None:
        assert score_display(MatchState(status="FINISHED")) == DEFAULT_SCORE_TEXT
