"""Shared test fixtures."""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable

import httpx
import pytest


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in fixed chunks, recording reads and closure."""

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._chunks = list(chunks)
        self.reads = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self._chunks:
            self.reads += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def request_body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


@pytest.fixture(autouse=True)
def _env_setup(monkeypatch):
    """Keep tests independent of the developer's environment."""
    monkeypatch.setenv("QUERY_AGENT_HOST", "https://agents.test")
    monkeypatch.setenv("QUERY_AGENT_REQUEST_ORIGIN", "python-client")
    monkeypatch.setenv("WEAVIATE_URL", "")
    monkeypatch.setenv("WEAVIATE_API_KEY", "")


@pytest.fixture
def settings():
    from query_agent.config import Settings

    return Settings(QUERY_AGENT_HOST="https://agents.test", QUERY_AGENT_TIMEOUT=5.0)


@pytest.fixture
def connection():
    from query_agent.connection import StaticConnection

    return StaticConnection(
        host="test-cluster",
        bearer_token="Bearer test-token",
        headers={"X-Provider": "test-key"},
    )


@pytest.fixture
def api_response() -> dict:
    """A full agent response as sent on the wire."""
    return {
        "original_query": "Test query",
        "collection_names": ["test-collection"],
        "searches": [
            [
                {
                    "collection": "test-collection",
                    "queries": ["Test search"],
                    "filters": [],
                    "filter_operators": "AND",
                }
            ]
        ],
        "aggregations": [],
        "usage": {
            "requests": 1,
            "request_tokens": 128,
            "response_tokens": 256,
            "total_tokens": 384,
        },
        "total_time": 10,
        "is_partial_answer": False,
        "missing_information": [],
        "final_answer": "Test answer",
        "sources": [{"object_id": "123", "collection": "test-collection"}],
    }


@pytest.fixture
def search_only_response() -> dict:
    return {
        "original_query": "Test this search only mode!",
        "searches": [
            {
                "queries": ["search query"],
                "filters": [
                    [
                        {
                            "filter_type": "integer",
                            "property_name": "test_property",
                            "operator": ">",
                            "value": 0,
                        }
                    ]
                ],
                "filter_operators": "AND",
                "collection": "test_collection",
            }
        ],
        "usage": {"requests": 0},
        "total_time": 1.5,
        "search_results": {
            "objects": [
                {"uuid": "e6dc0a31-76f8-4bd3-b563-677ced6eb557", "properties": {"text": "hello"}},
                {"uuid": "cf5401cc-f4f1-4eb9-a6a1-173d34f94339", "properties": {"text": "world!"}},
            ]
        },
    }


@pytest.fixture
def chunked_stream() -> type[ChunkedStream]:
    return ChunkedStream


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    return make_client


@pytest.fixture
def read_body() -> Callable[[httpx.Request], dict[str, Any]]:
    return request_body
