"""
Standings table extraction.

Competition table endpoints answer in several shapes depending on which
upstream source backs the competition. TABLE_SHAPES lists the recognized
shapes in precedence order; the first whose predicate matches supplies the
raw rows, which are then mapped field by field into StandingsRow.
"""
from __future__ import annotations

import math
from typing import Any, Callable, NamedTuple, Optional

from shared.models.domain import StandingsRow, coerce_text
from shared.models.enums import MISSING_VALUE_PLACEHOLDER, TEAM_NAME_PLACEHOLDER
from shared.utils.logging import get_logger

logger = get_logger(__name__)

Number = float | int


class TableShape(NamedTuple):
    name: str
    matches: Callable[[Any], bool]
    extract: Callable[[Any], list[Any]]


def _dig(value: Any, *path: str) -> Any:
    """Follow a key path through nested dicts; None when any hop is missing."""
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _is_list_of_lists(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and isinstance(value[0], list)


def _response_rows(payload: Any) -> Optional[list[Any]]:
    response = _dig(payload, "response")
    if not isinstance(response, list):
        return None
    for entry in response:
        table = _dig(entry, "table")
        if isinstance(table, list):
            return table
    for entry in response:
        standings = _dig(entry, "league", "standings")
        if _is_list_of_lists(standings):
            return standings[0]
    return None


TABLE_SHAPES: tuple[TableShape, ...] = (
    TableShape(
        "bare_list",
        lambda p: isinstance(p, list),
        lambda p: p,
    ),
    TableShape(
        "table",
        lambda p: isinstance(_dig(p, "table"), list),
        lambda p: _dig(p, "table"),
    ),
    TableShape(
        "response",
        lambda p: _response_rows(p) is not None,
        lambda p: _response_rows(p) or [],
    ),
    TableShape(
        "standings",
        lambda p: _is_list_of_lists(_dig(p, "standings")),
        lambda p: _dig(p, "standings")[0],
    ),
    TableShape(
        "data_table",
        lambda p: isinstance(_dig(p, "data", "table"), list),
        lambda p: _dig(p, "data", "table"),
    ),
)


def extract_table_rows(payload: Any) -> list[Any]:
    """Raw row objects from any recognized payload shape; [] when none matches."""
    for shape in TABLE_SHAPES:
        if shape.matches(payload):
            return shape.extract(payload)
    logger.debug("standings_shape_unrecognized", payload_type=type(payload).__name__)
    return []


# ── Row mapping ─────────────────────────────────────────────────────────

def to_number(value: Any) -> Optional[Number]:
    """Finite number from an int, float or numeric string; None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number: Number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        if number.is_integer():
            return int(number)
    return number


def format_number(number: Number) -> str:
    if isinstance(number, float) and number.is_integer():
        return str(int(number))
    return str(number)


def _first_present(row: Any, *paths: tuple[str, ...]) -> Any:
    for path in paths:
        value = _dig(row, *path)
        if value is not None:
            return value
    return None


def _computed_difference(goals: Any) -> Optional[Number]:
    scored = to_number(_dig(goals, "for"))
    conceded = to_number(_dig(goals, "against"))
    if scored is None or conceded is None:
        return None
    return scored - conceded


def _display(raw: Any, render: Callable[[Number], str] = format_number) -> str:
    """Parsed number via `render`, raw text if unparseable, placeholder if absent."""
    number = to_number(raw)
    if number is not None:
        return render(number)
    if raw is None:
        return MISSING_VALUE_PLACEHOLDER
    return coerce_text(raw) or ""


def _signed(number: Number) -> str:
    text = format_number(number)
    return f"+{text}" if number > 0 else text


def map_row(row: Any, index: int) -> StandingsRow:
    rank_raw = _first_present(row, ("rank",), ("position",), ("rg",), ("place",))
    rank_num = to_number(rank_raw)
    if rank_num is not None:
        rank = format_number(rank_num)
    elif rank_raw is not None:
        rank = coerce_text(rank_raw) or ""
    else:
        rank = str(index + 1)

    team = _first_present(row, ("team", "name"), ("club", "name"), ("teamName",), ("name",))

    diff_raw = _first_present(row, ("diff",), ("goalDiff",), ("goalsDiff",))
    if diff_raw is None:
        diff_raw = _computed_difference(_dig(row, "goals"))
    if diff_raw is None:
        diff_raw = _computed_difference(_dig(row, "all", "goals"))

    return StandingsRow(
        rank=rank,
        team=coerce_text(team) if team is not None else TEAM_NAME_PLACEHOLDER,
        points=_display(_first_present(row, ("points",), ("pts",)), lambda n: f"{format_number(n)}pts"),
        played=_display(
            _first_present(row, ("played",), ("matchesPlayed",), ("playedGames",), ("all", "played"))
        ),
        goal_difference=_display(diff_raw, _signed),
    )


def table_rows_from_payload(payload: Any) -> list[StandingsRow]:
    """Canonical standings rows for any recognized payload; recomputed on every call."""
    return [map_row(row, idx) for idx, row in enumerate(extract_table_rows(payload))]
