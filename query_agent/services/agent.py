"""Async client for the Weaviate query agent service."""

from __future__ import annotations

import json
import warnings
from contextlib import aclosing
from typing import Any, AsyncIterator

import httpx
from pydantic import ValidationError

from query_agent.config import Settings, get_settings
from query_agent.connection import ConnectionDetailsProvider, get_headers
from query_agent.models.requests import (
    QueryAgentCollection,
    QueryAgentQuery,
    map_collections,
    map_query,
)
from query_agent.models.responses import (
    QueryAgentResponse,
    SearchModeResponse,
    StreamOutput,
    map_api_response,
)
from query_agent.response.errors import handle_error
from query_agent.services.dispatcher import dispatch_events
from query_agent.services.search import QueryAgentSearcher
from query_agent.sse.reader import fetch_server_sent_events
from query_agent.utils.exceptions import ProtocolViolationError, QueryAgentConfigurationError
from query_agent.utils.logging import get_logger

logger = get_logger(__name__)


def _drop_none(body: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in body.items() if v is not None}


class QueryAgent:
    """Run natural-language queries against Weaviate collections through the agent service.

    The agent either owns an ``httpx.AsyncClient`` (closed by ``aclose`` or
    the async context manager) or uses one supplied by the caller, which the
    caller keeps responsibility for.
    """

    def __init__(
        self,
        connection: ConnectionDetailsProvider,
        *,
        collections: list[QueryAgentCollection] | None = None,
        system_prompt: str | None = None,
        agents_host: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._connection = connection
        self.collections = collections
        self.system_prompt = system_prompt
        self.agents_host = (agents_host or self._settings.QUERY_AGENT_HOST).rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self._settings.QUERY_AGENT_TIMEOUT)

    async def __aenter__(self) -> QueryAgent:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _validate_collections(
        self, collections: list[QueryAgentCollection] | None
    ) -> list[QueryAgentCollection]:
        target = collections if collections is not None else self.collections
        if not target:
            raise QueryAgentConfigurationError("No collections provided to the query agent.")
        return target

    async def _post(self, path: str, body: dict[str, Any], request_headers: dict[str, str]) -> Any:
        response = await self._http.post(
            f"{self.agents_host}{path}",
            headers=request_headers,
            json=body,
        )
        if not response.is_success:
            logger.warning("query_agent_request_failed", endpoint=path, status=response.status_code)
            handle_error(response.text, response.status_code)
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise ProtocolViolationError(f"Invalid JSON from {path}: {response.text}") from exc

    @staticmethod
    def _map_response(payload: Any) -> QueryAgentResponse:
        try:
            return QueryAgentResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolViolationError(f"Invalid query agent response: {exc}") from exc

    # ── Single-shot queries ──────────────────────────────────────────

    async def run(
        self,
        query: str,
        *,
        collections: list[QueryAgentCollection] | None = None,
        context: QueryAgentResponse | None = None,
    ) -> QueryAgentResponse:
        """Run the query agent. Deprecated, use ``ask``."""
        warnings.warn("QueryAgent.run is deprecated, use ask", DeprecationWarning, stacklevel=2)
        target = self._validate_collections(collections)
        request_headers, connection_headers = await get_headers(
            self._connection, self._settings.QUERY_AGENT_REQUEST_ORIGIN
        )
        body = _drop_none({
            "headers": connection_headers,
            "query": query,
            "collections": map_collections(target),
            "system_prompt": self.system_prompt,
            "previous_response": map_api_response(context) if context else None,
        })
        payload = await self._post("/agent/query", body, request_headers)
        return self._map_response(payload)

    async def ask(
        self,
        query: QueryAgentQuery,
        *,
        collections: list[QueryAgentCollection] | None = None,
    ) -> QueryAgentResponse:
        """Ask a question, or continue a conversation given as a list of chat messages."""
        target = self._validate_collections(collections)
        request_headers, connection_headers = await get_headers(
            self._connection, self._settings.QUERY_AGENT_REQUEST_ORIGIN
        )
        body = _drop_none({
            "headers": connection_headers,
            "query": map_query(query),
            "collections": map_collections(target),
            "system_prompt": self.system_prompt,
        })
        payload = await self._post("/query/ask", body, request_headers)
        return self._map_response(payload)

    # ── Streaming queries ────────────────────────────────────────────

    async def _stream(self, body: dict[str, Any]) -> AsyncIterator[StreamOutput]:
        request_headers, connection_headers = await get_headers(
            self._connection, self._settings.QUERY_AGENT_REQUEST_ORIGIN
        )
        if connection_headers is not None:
            body = {"headers": connection_headers, **body}
        events = fetch_server_sent_events(
            self._http,
            f"{self.agents_host}/agent/stream_query",
            headers=request_headers,
            json=body,
        )
        async with aclosing(dispatch_events(events)) as outputs:
            async for output in outputs:
                yield output

    async def stream(
        self,
        query: str,
        *,
        collections: list[QueryAgentCollection] | None = None,
        context: QueryAgentResponse | None = None,
        include_progress: bool = True,
        include_final_state: bool = True,
    ) -> AsyncIterator[StreamOutput]:
        """Stream progress, tokens and the final state. Deprecated, use ``ask_stream``."""
        warnings.warn("QueryAgent.stream is deprecated, use ask_stream", DeprecationWarning, stacklevel=2)
        target = self._validate_collections(collections)
        body = _drop_none({
            "query": query,
            "collections": map_collections(target),
            "system_prompt": self.system_prompt,
            "previous_response": map_api_response(context) if context else None,
            "include_progress": include_progress,
            "include_final_state": include_final_state,
        })
        async with aclosing(self._stream(body)) as outputs:
            async for output in outputs:
                yield output

    async def ask_stream(
        self,
        query: QueryAgentQuery,
        *,
        collections: list[QueryAgentCollection] | None = None,
        include_progress: bool = True,
        include_final_state: bool = True,
    ) -> AsyncIterator[StreamOutput]:
        """Ask a question and stream the answer as it is produced.

        Yields ``ProgressMessage``, ``StreamedTokens`` and finally a
        ``QueryAgentResponse``, each optional per the ``include_*`` flags.
        Wrap the iterator in ``contextlib.aclosing`` when stopping early so
        the connection is released immediately.
        """
        target = self._validate_collections(collections)
        body = _drop_none({
            "query": map_query(query),
            "collections": map_collections(target),
            "system_prompt": self.system_prompt,
            "include_progress": include_progress,
            "include_final_state": include_final_state,
        })
        async with aclosing(self._stream(body)) as outputs:
            async for output in outputs:
                yield output

    # ── Search-only mode ─────────────────────────────────────────────

    def configure_search(
        self,
        query: QueryAgentQuery,
        *,
        collections: list[QueryAgentCollection] | None = None,
    ) -> QueryAgentSearcher:
        """Prepare a search session; call ``run`` on it to fetch pages."""
        return QueryAgentSearcher(
            self._http,
            self._connection,
            query,
            self._validate_collections(collections),
            self.system_prompt,
            self.agents_host,
            request_origin=self._settings.QUERY_AGENT_REQUEST_ORIGIN,
        )

    async def search(
        self,
        query: QueryAgentQuery,
        *,
        limit: int = 20,
        collections: list[QueryAgentCollection] | None = None,
    ) -> SearchModeResponse:
        """Run search-only mode and return the first page.

        Use ``response.next(limit=..., offset=...)`` for further pages; they
        reuse the same underlying searches.
        """
        searcher = self.configure_search(query, collections=collections)
        return await searcher.run(limit=limit, offset=0)
