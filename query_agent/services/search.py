"""Search-only mode with a per-session cached search plan.

The first page request of a session asks the remote planner to choose the
sub-queries (``searches: null``). The plan it returns is cached verbatim and
sent back on every later page, so all pages are cut from the same result set.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from typing import Any, Union

import httpx
from pydantic import ValidationError

from query_agent.connection import ConnectionDetailsProvider, get_headers
from query_agent.models.requests import (
    PaginationRequest,
    QueryAgentCollection,
    QueryAgentQuery,
    map_collections,
    map_query,
)
from query_agent.models.responses import SearchModeResponse
from query_agent.response.errors import handle_error
from query_agent.utils.exceptions import ProtocolViolationError, QueryAgentConfigurationError
from query_agent.utils.logging import get_logger

logger = get_logger(__name__)


# ── Plan state ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Unplanned:
    """No plan yet; the next request asks the planner for one."""


@dataclass(frozen=True)
class Planned:
    searches: list[dict[str, Any]]


SearchPlanState = Union[Unplanned, Planned]


def next_plan_state(state: SearchPlanState, api_searches: list[dict[str, Any]] | None) -> SearchPlanState:
    """Apply a successful response to the plan state.

    A plan is only ever set once. A response without searches leaves an
    unplanned session unplanned.
    """
    if isinstance(state, Planned) or api_searches is None:
        return state
    return Planned(searches=copy.deepcopy(api_searches))


# ── Searcher ─────────────────────────────────────────────────────────


class QueryAgentSearcher:
    """A prepared search-only query whose pages share one search plan.

    Page requests must be issued one at a time.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        connection: ConnectionDetailsProvider,
        query: QueryAgentQuery,
        collections: list[QueryAgentCollection],
        system_prompt: str | None,
        agents_host: str,
        request_origin: str = "python-client",
    ) -> None:
        self._http = http_client
        self._connection = connection
        self._query = query
        self._collections = collections
        self._system_prompt = system_prompt
        self._agents_host = agents_host.rstrip("/")
        self._request_origin = request_origin
        self._state: SearchPlanState = Unplanned()

    @property
    def plan_state(self) -> SearchPlanState:
        return self._state

    def build_request_body(
        self,
        limit: int,
        offset: int,
        connection_headers: dict[str, str] | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "original_query": map_query(self._query),
            "collections": map_collections(self._collections),
            "limit": limit,
            "offset": offset,
        }
        if connection_headers is not None:
            body["headers"] = connection_headers
        if isinstance(self._state, Planned):
            body["searches"] = self._state.searches
        else:
            body["searches"] = None
            body["system_prompt"] = self._system_prompt or None
        return body

    async def run(self, *, limit: int = 20, offset: int = 0) -> SearchModeResponse:
        """Fetch one page of results.

        Repeated calls on the same searcher execute the same underlying
        searches, so ``offset`` pages through a stable result set.
        """
        if not self._collections:
            raise QueryAgentConfigurationError("No collections provided to the query agent.")
        page = PaginationRequest(limit=limit, offset=offset)

        request_headers, connection_headers = await get_headers(self._connection, self._request_origin)
        body = self.build_request_body(page.limit, page.offset, connection_headers)
        planning = isinstance(self._state, Unplanned)

        response = await self._http.post(
            f"{self._agents_host}/query/search_only",
            headers=request_headers,
            json=body,
        )
        if not response.is_success:
            logger.warning(
                "query_agent_request_failed",
                endpoint="search_only",
                status=response.status_code,
                planning=planning,
            )
            handle_error(response.text, response.status_code)

        try:
            payload = response.json()
            mapped = SearchModeResponse.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ProtocolViolationError(f"Invalid search_only response: {exc}") from exc

        api_searches = payload.get("searches")
        new_state = next_plan_state(self._state, api_searches)
        if new_state is not self._state:
            logger.info("search_plan_cached", searches=len(api_searches))
        elif planning:
            logger.warning("search_plan_missing", limit=page.limit, offset=page.offset)
        self._state = new_state

        mapped._searcher = self
        return mapped
