"""Tests for the text/event-stream decoder."""
from __future__ import annotations

from ingest.providers.sse import SSEDecoder, ServerSentEvent


def _feed(decoder: SSEDecoder, *lines: str) -> list[ServerSentEvent]:
    return [e for e in (decoder.decode(line) for line in lines) if e is not None]


def test_default_event_type_is_message() -> None:
    events = _feed(SSEDecoder(), "data: [1]", "")
    assert events == [ServerSentEvent(event="message", data="[1]")]


def test_named_event_without_data_is_dispatched() -> None:
    events = _feed(SSEDecoder(), "event: connected", "")
    assert events[0].event == "connected"
    assert events[0].data == ""


def test_multiline_data_joined_with_newline() -> None:
    events = _feed(SSEDecoder(), "event: live", "data: [", "data: ]", "")
    assert events[0].data == "[\n]"


def test_comments_and_unknown_fields_ignored() -> None:
    events = _feed(SSEDecoder(), ": keep-alive", "foo: bar", "data:x", "")
    assert [e.data for e in events] == ["x"]


def test_only_one_leading_space_stripped() -> None:
    events = _feed(SSEDecoder(), "data:  padded", "")
    assert events[0].data == " padded"


def test_blank_lines_alone_dispatch_nothing() -> None:
    assert _feed(SSEDecoder(), "", "", ": ping", "") == []


def test_id_persists_across_events() -> None:
    decoder = SSEDecoder()
    events = _feed(decoder, "id: 7", "data: a", "", "data: b", "")
    assert [e.id for e in events] == ["7", "7"]
    assert decoder.last_event_id == "7"


def test_retry_field() -> None:
    decoder = SSEDecoder()
    events = _feed(decoder, "retry: 2500", "data: a", "", "retry: soon", "data: b", "")
    assert events[0].retry_ms == 2500
    assert events[1].retry_ms is None


def test_state_resets_between_events() -> None:
    events = _feed(SSEDecoder(), "event: connected", "", "data: [2]", "")
    assert [(e.event, e.data) for e in events] == [("connected", ""), ("message", "[2]")]
