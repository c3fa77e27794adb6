"""
Incremental decoder for the text/event-stream wire format.

Feed it decoded lines (without terminators) and it returns a ServerSentEvent
whenever a blank line completes one.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ServerSentEvent:
    event: str = DEFAULT_EVENT
    data: str = ""
    id: Optional[str] = None
    retry_ms: Optional[int] = None


class SSEDecoder:
    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []
        self._last_id: Optional[str] = None
        self._retry_ms: Optional[int] = None

    @property
    def last_event_id(self) -> Optional[str]:
        return self._last_id

    def decode(self, line: str) -> Optional[ServerSentEvent]:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        elif field == "id":
            if "\0" not in value:
                self._last_id = value
        elif field == "retry":
            if value.isdigit():
                self._retry_ms = int(value)
        return None

    def _dispatch(self) -> Optional[ServerSentEvent]:
        if not self._data and not self._event and self._retry_ms is None:
            return None
        sse = ServerSentEvent(
            event=self._event or DEFAULT_EVENT,
            data="\n".join(self._data),
            id=self._last_id,
            retry_ms=self._retry_ms,
        )
        self._event = ""
        self._data = []
        self._retry_ms = None
        return sse
