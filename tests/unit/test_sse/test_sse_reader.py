"""Unit tests for reading server-sent events off a streamed response."""

from __future__ import annotations

import httpx
import pytest

from query_agent.sse.parser import ServerSentEvent
from query_agent.sse.reader import fetch_server_sent_events
from query_agent.utils.exceptions import StreamTransportError

URL = "https://agents.test/agent/stream_query"


async def _collect(events) -> list[ServerSentEvent]:
    return [event async for event in events]


@pytest.mark.asyncio
async def test_events_are_reassembled_across_chunks(chunked_stream, mock_client):
    stream = chunked_stream([b"event: progress_message\nda", b"ta: one\n", b"\ndata: two\n\n"])
    async with mock_client(lambda request: httpx.Response(200, stream=stream)) as client:
        events = await _collect(fetch_server_sent_events(client, URL, json={}))

    assert events == [
        ServerSentEvent(event="progress_message", data="one"),
        ServerSentEvent(event="message", data="two"),
    ]


@pytest.mark.asyncio
async def test_trailing_event_is_flushed_at_end_of_stream(chunked_stream, mock_client):
    stream = chunked_stream([b"data: first\n\n", b"event: final_state\ndata: last"])
    async with mock_client(lambda request: httpx.Response(200, stream=stream)) as client:
        events = await _collect(fetch_server_sent_events(client, URL, json={}))

    assert events[-1] == ServerSentEvent(event="final_state", data="last")
    assert len(events) == 2


@pytest.mark.asyncio
async def test_multibyte_character_split_across_chunks(chunked_stream, mock_client):
    encoded = "data: café ✓\n\n".encode("utf-8")
    split_at = encoded.index("é".encode("utf-8")) + 1
    stream = chunked_stream([encoded[:split_at], encoded[split_at:]])
    async with mock_client(lambda request: httpx.Response(200, stream=stream)) as client:
        events = await _collect(fetch_server_sent_events(client, URL, json={}))

    assert events == [ServerSentEvent(event="message", data="café ✓")]
    assert "�" not in events[0].data


@pytest.mark.asyncio
async def test_accept_header_is_forced_to_event_stream(chunked_stream, mock_client):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, stream=chunked_stream([b"data: x\n\n"]))

    async with mock_client(handler) as client:
        await _collect(
            fetch_server_sent_events(
                client,
                URL,
                headers={"accept": "application/json", "Authorization": "Bearer t"},
                json={"query": "q"},
            )
        )

    assert seen[0].headers["accept"] == "text/event-stream"
    assert seen[0].headers["authorization"] == "Bearer t"
    assert seen[0].method == "POST"


@pytest.mark.asyncio
async def test_failed_response_raises_without_events(mock_client):
    async with mock_client(lambda request: httpx.Response(503, text="overloaded")) as client:
        events = fetch_server_sent_events(client, URL, json={})
        received = []
        with pytest.raises(StreamTransportError) as exc_info:
            async for event in events:
                received.append(event)

    assert received == []
    assert exc_info.value.response_text == "overloaded"
    assert exc_info.value.status_code == 503
    assert "overloaded" in str(exc_info.value)


@pytest.mark.asyncio
async def test_reader_does_not_read_ahead_of_consumer(chunked_stream, mock_client):
    stream = chunked_stream([b"data: a\n\n", b"data: b\n\n", b"data: c\n\n"])
    async with mock_client(lambda request: httpx.Response(200, stream=stream)) as client:
        events = fetch_server_sent_events(client, URL, json={})
        first = await events.__anext__()
        assert first.data == "a"
        assert stream.reads == 1

        second = await events.__anext__()
        assert second.data == "b"
        assert stream.reads == 2
        await events.aclose()


@pytest.mark.asyncio
async def test_closing_early_releases_the_response(chunked_stream, mock_client):
    stream = chunked_stream([b"data: a\n\n", b"data: b\n\n"])
    async with mock_client(lambda request: httpx.Response(200, stream=stream)) as client:
        events = fetch_server_sent_events(client, URL, json={})
        await events.__anext__()
        await events.aclose()

        assert stream.closed
        assert stream.reads == 1
        with pytest.raises(StopAsyncIteration):
            await events.__anext__()


@pytest.mark.asyncio
async def test_exhausted_stream_cannot_be_replayed(chunked_stream, mock_client):
    stream = chunked_stream([b"data: only\n\n"])
    async with mock_client(lambda request: httpx.Response(200, stream=stream)) as client:
        events = fetch_server_sent_events(client, URL, json={})
        assert len(await _collect(events)) == 1
        assert await _collect(events) == []
    assert stream.closed
