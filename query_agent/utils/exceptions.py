"""Exception hierarchy for the query agent client."""

from __future__ import annotations

from typing import Any


class QueryAgentClientError(Exception):
    """Base exception for all query agent client errors."""


class QueryAgentConfigurationError(QueryAgentClientError):
    """The agent was asked to run without the inputs it needs (e.g. no collections)."""


class QueryAgentTransportError(QueryAgentClientError):
    """Non-success response whose body is not a structured agent error.

    ``response_text`` holds the raw body so callers can inspect it.
    """

    def __init__(
        self,
        message: str,
        response_text: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.response_text = response_text
        self.status_code = status_code


class StreamTransportError(QueryAgentTransportError):
    """The event stream could not be opened (bad status or missing body)."""


class QueryAgentError(QueryAgentClientError):
    """Structured error reported by the agent service."""

    def __init__(self, message: str, code: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __repr__(self) -> str:
        return f"QueryAgentError(message={self.message!r}, code={self.code!r}, details={self.details!r})"


class ProtocolViolationError(QueryAgentClientError):
    """A well-framed event carried an unexpected kind or an invalid payload."""
