"""Request-side models: conversation messages and collection targets."""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class QueryAgentCollectionConfig(BaseModel):
    """A collection to query, with optional per-collection settings."""

    name: str
    tenant: str | None = None
    view_properties: list[str] | None = Field(
        default=None, description="Properties the agent is allowed to see"
    )
    target_vector: str | list[str] | None = Field(
        default=None, description="Target vector if the collection uses named vectors"
    )


class PaginationRequest(BaseModel):
    limit: int = Field(default=20, ge=0)
    offset: int = Field(default=0, ge=0)


QueryAgentCollection = Union[str, QueryAgentCollectionConfig]
QueryAgentQuery = Union[str, list[ChatMessage]]


def map_collections(collections: list[QueryAgentCollection]) -> list[Any]:
    return [
        c if isinstance(c, str) else c.model_dump(mode="json", exclude_none=True)
        for c in collections
    ]


def map_query(query: QueryAgentQuery) -> Any:
    """A plain string is sent as-is; a conversation is wrapped as ``{"messages": [...]}``."""
    if isinstance(query, str):
        return query
    return {"messages": [ChatMessage.model_validate(m).model_dump(mode="json") for m in query]}
