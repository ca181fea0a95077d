"""Async Python client for the Weaviate query agent service."""

from query_agent.connection import ConnectionDetails, StaticConnection
from query_agent.models.requests import ChatMessage, QueryAgentCollectionConfig
from query_agent.models.responses import (
    ProgressMessage,
    QueryAgentResponse,
    SearchModeResponse,
    StreamedTokens,
)
from query_agent.services.agent import QueryAgent
from query_agent.services.search import QueryAgentSearcher
from query_agent.utils.exceptions import (
    ProtocolViolationError,
    QueryAgentClientError,
    QueryAgentConfigurationError,
    QueryAgentError,
    QueryAgentTransportError,
    StreamTransportError,
)

__all__ = [
    "ChatMessage",
    "ConnectionDetails",
    "ProgressMessage",
    "ProtocolViolationError",
    "QueryAgent",
    "QueryAgentClientError",
    "QueryAgentCollectionConfig",
    "QueryAgentConfigurationError",
    "QueryAgentError",
    "QueryAgentResponse",
    "QueryAgentSearcher",
    "QueryAgentTransportError",
    "SearchModeResponse",
    "StaticConnection",
    "StreamTransportError",
    "StreamedTokens",
]
