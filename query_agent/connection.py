"""Connection details for the Weaviate cluster the agent runs against."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel

from query_agent.config import Settings


class ConnectionDetails(BaseModel):
    host: str
    bearer_token: str | None = None
    headers: dict[str, str] | None = None


class ConnectionDetailsProvider(Protocol):
    async def get_connection_details(self) -> ConnectionDetails: ...


class StaticConnection:
    """Provider returning fixed connection details."""

    def __init__(
        self,
        host: str,
        bearer_token: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._details = ConnectionDetails(host=host, bearer_token=bearer_token, headers=headers)

    @classmethod
    def from_settings(cls, settings: Settings) -> StaticConnection:
        token = f"Bearer {settings.WEAVIATE_API_KEY}" if settings.WEAVIATE_API_KEY else None
        return cls(host=settings.WEAVIATE_URL, bearer_token=token)

    async def get_connection_details(self) -> ConnectionDetails:
        return self._details


async def get_headers(
    connection: ConnectionDetailsProvider,
    request_origin: str = "python-client",
) -> tuple[dict[str, str], dict[str, str] | None]:
    """Return the outbound request headers and the pass-through cluster headers."""
    details = await connection.get_connection_details()

    request_headers = {
        "Content-Type": "application/json",
        "X-Weaviate-Cluster-Url": details.host,
        "X-Agent-Request-Origin": request_origin,
    }
    if details.bearer_token:
        request_headers["Authorization"] = details.bearer_token

    return request_headers, details.headers
