"""Split an accumulated SSE text buffer into complete events."""

from __future__ import annotations

import re
from dataclasses import dataclass

_EVENT_DELIMITER = re.compile(r"\r?\n\r?\n")
_LINE_DELIMITER = re.compile(r"\r?\n")


@dataclass(frozen=True)
class ServerSentEvent:
    data: str
    event: str = "message"


def _parse_block(block: str) -> ServerSentEvent | None:
    event_type = "message"
    data_buf: list[str] = []

    for line in _LINE_DELIMITER.split(block):
        if line.startswith("event:"):
            event_type = line[6:].strip()
        elif line.startswith("data:"):
            data_buf.append(line[5:].strip())

    data = "\n".join(data_buf)
    if not data:
        return None
    return ServerSentEvent(data=data, event=event_type)


def parse_server_sent_events(buffer: str, flush: bool = False) -> tuple[list[ServerSentEvent], str]:
    """Extract complete events from ``buffer`` and return them with the unconsumed remainder.

    Events are delimited by a blank line. Unless ``flush`` is set, the last
    segment may still be mid-event and is handed back as the remainder.
    Only ``event:`` and ``data:`` fields are read; ``id:``, ``retry:`` and
    comment lines are ignored. Blocks without data produce no event.
    """
    blocks = _EVENT_DELIMITER.split(buffer)
    remainder = "" if flush else blocks.pop()

    events: list[ServerSentEvent] = []
    for block in blocks:
        event = _parse_block(block)
        if event is not None:
            events.append(event)

    return events, remainder
