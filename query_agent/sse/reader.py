"""Read a streamed HTTP response body as a sequence of server-sent events."""

from __future__ import annotations

import codecs
from typing import Any, AsyncIterator

import httpx

from query_agent.sse.parser import ServerSentEvent, parse_server_sent_events
from query_agent.utils.exceptions import StreamTransportError
from query_agent.utils.logging import get_logger

logger = get_logger(__name__)


def _event_stream_headers(headers: dict[str, str] | None) -> dict[str, str]:
    merged = {k: v for k, v in (headers or {}).items() if k.lower() != "accept"}
    merged["Accept"] = "text/event-stream"
    return merged


async def fetch_server_sent_events(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "POST",
    headers: dict[str, str] | None = None,
    json: Any = None,
) -> AsyncIterator[ServerSentEvent]:
    """Issue a request and yield the events of its ``text/event-stream`` body.

    Bytes are pulled one chunk at a time and only after the consumer has taken
    every event extracted from the previous chunk. The response is released
    when the body is exhausted, when an error is raised, or when the consumer
    closes the generator early.
    """
    async with client.stream(method, url, headers=_event_stream_headers(headers), json=json) as response:
        if not response.is_success:
            await response.aread()
            text = response.text
            logger.warning("sse_stream_failed", url=url, status=response.status_code)
            raise StreamTransportError(
                f"Query agent streaming failed. {text}",
                response_text=text,
                status_code=response.status_code,
            )

        logger.debug("sse_stream_opened", url=url, status=response.status_code)
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        event_count = 0

        async for chunk in response.aiter_bytes():
            buffer += decoder.decode(chunk)
            events, buffer = parse_server_sent_events(buffer)
            for event in events:
                event_count += 1
                yield event

        buffer += decoder.decode(b"", final=True)
        events, _ = parse_server_sent_events(buffer, flush=True)
        for event in events:
            event_count += 1
            yield event

        logger.debug("sse_stream_closed", url=url, events=event_count)
