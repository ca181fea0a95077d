"""Domain models for query agent responses and their reverse mapping to wire form."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, PrivateAttr

from query_agent.models.filters import PropertyFilter, map_api_property_filter


# ── Aggregation metrics ──────────────────────────────────────────────


class NumericMetrics(str, Enum):
    COUNT = "COUNT"
    MAXIMUM = "MAXIMUM"
    MEAN = "MEAN"
    MEDIAN = "MEDIAN"
    MINIMUM = "MINIMUM"
    MODE = "MODE"
    SUM = "SUM"
    TYPE = "TYPE"


class TextMetrics(str, Enum):
    COUNT = "COUNT"
    TYPE = "TYPE"
    TOP_OCCURRENCES = "TOP_OCCURRENCES"


class BooleanMetrics(str, Enum):
    COUNT = "COUNT"
    TYPE = "TYPE"
    TOTAL_TRUE = "TOTAL_TRUE"
    TOTAL_FALSE = "TOTAL_FALSE"
    PERCENTAGE_TRUE = "PERCENTAGE_TRUE"
    PERCENTAGE_FALSE = "PERCENTAGE_FALSE"


# ── Building blocks ──────────────────────────────────────────────────


class SearchResult(BaseModel):
    collection: str
    queries: list[str] = Field(default_factory=list)
    filters: list[list[PropertyFilter]] = Field(default_factory=list)
    filter_operators: Literal["AND", "OR"] = "AND"


class PropertyAggregation(BaseModel):
    property_name: str
    metrics: str  # one of NumericMetrics / TextMetrics / BooleanMetrics
    top_occurrences_limit: int | None = None


class AggregationResult(BaseModel):
    collection: str
    search_query: str | None = None
    groupby_property: str | None = None
    aggregations: list[PropertyAggregation] = Field(default_factory=list)
    filters: list[PropertyFilter] = Field(default_factory=list)


class Usage(BaseModel):
    requests: int = 0
    request_tokens: int | None = None
    response_tokens: int | None = None
    total_tokens: int | None = None
    details: dict[str, int | float] | None = None


class Source(BaseModel):
    object_id: str
    collection: str


# ── Top-level responses ──────────────────────────────────────────────


class QueryAgentResponse(BaseModel):
    output_type: Literal["final_state"] = "final_state"
    original_query: Any
    collection_names: list[str] = Field(default_factory=list)
    searches: list[list[SearchResult]] = Field(default_factory=list)
    aggregations: list[list[AggregationResult]] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)
    total_time: float = 0.0
    aggregation_answer: str | None = None
    has_aggregation_answer: bool = False
    has_search_answer: bool = False
    is_partial_answer: bool = False
    missing_information: list[str] = Field(default_factory=list)
    final_answer: str = ""
    sources: list[Source] = Field(default_factory=list)

    def display(self) -> None:
        print(self.model_dump_json(indent=2))


class ProgressMessage(BaseModel):
    output_type: Literal["progress_message"] = "progress_message"
    stage: str
    message: str
    details: dict[str, Any] | None = None


class StreamedTokens(BaseModel):
    output_type: Literal["streamed_tokens"] = "streamed_tokens"
    delta: str


StreamOutput = ProgressMessage | StreamedTokens | QueryAgentResponse


class SearchModeResponse(BaseModel):
    """One page of search-only results.

    ``searches`` are the sub-queries the planner chose for this session; every
    page fetched through ``next`` reuses them.
    """

    original_query: Any
    searches: list[SearchResult] | None = None
    usage: Usage = Field(default_factory=Usage)
    total_time: float = 0.0
    search_results: Any = None

    _searcher: Any = PrivateAttr(default=None)  # QueryAgentSearcher

    async def next(self, *, limit: int = 20, offset: int = 0) -> SearchModeResponse:
        """Fetch another page from the same search session."""
        if self._searcher is None:
            raise RuntimeError("This response is not bound to a search session")
        return await self._searcher.run(limit=limit, offset=offset)


# ── Reverse mapping (domain -> wire) ─────────────────────────────────


def _map_api_filters(filters: list[Any]) -> list[dict[str, Any]]:
    mapped = (map_api_property_filter(f) for f in filters)
    return [f for f in mapped if f is not None]


def map_api_response(response: QueryAgentResponse) -> dict[str, Any]:
    """Wire form of ``response`` for use as ``previous_response`` context.

    Filters the client could not represent are dropped.
    """
    return {
        "original_query": response.original_query,
        "collection_names": response.collection_names,
        "searches": [
            [
                {
                    "collection": result.collection,
                    "queries": result.queries,
                    "filters": [_map_api_filters(group) for group in result.filters],
                    "filter_operators": result.filter_operators,
                }
                for result in search_group
            ]
            for search_group in response.searches
        ],
        "aggregations": [
            [
                {
                    **result.model_dump(mode="json", exclude={"filters"}, exclude_none=True),
                    "filters": _map_api_filters(result.filters),
                }
                for result in aggregation_group
            ]
            for aggregation_group in response.aggregations
        ],
        "usage": response.usage.model_dump(mode="json", exclude_none=True),
        "total_time": response.total_time,
        "is_partial_answer": response.is_partial_answer,
        "missing_information": response.missing_information,
        "final_answer": response.final_answer,
        "sources": [source.model_dump(mode="json") for source in response.sources],
    }
