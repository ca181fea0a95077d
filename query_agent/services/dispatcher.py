"""Classify server-sent events from the agent and map them to typed messages."""

from __future__ import annotations

import json
from contextlib import aclosing
from typing import Any, AsyncGenerator, AsyncIterator

from pydantic import ValidationError

from query_agent.models.responses import (
    ProgressMessage,
    QueryAgentResponse,
    StreamedTokens,
    StreamOutput,
)
from query_agent.response.errors import handle_error
from query_agent.sse.parser import ServerSentEvent
from query_agent.utils.exceptions import ProtocolViolationError
from query_agent.utils.logging import get_logger

logger = get_logger(__name__)


def _load_payload(event: ServerSentEvent) -> Any:
    try:
        return json.loads(event.data)
    except json.JSONDecodeError as exc:
        raise ProtocolViolationError(
            f"Invalid JSON in {event.event} event: {event.data}"
        ) from exc


def _require_output_type(payload: Any, expected: str) -> dict[str, Any]:
    output_type = payload.get("output_type") if isinstance(payload, dict) else None
    if output_type != expected:
        raise ProtocolViolationError(f'Expected output_type "{expected}", got {output_type}')
    return payload


def map_progress_message(event: ServerSentEvent) -> ProgressMessage:
    payload = _require_output_type(_load_payload(event), "progress_message")
    try:
        return ProgressMessage(
            stage=payload.get("stage", ""),
            message=payload.get("message", ""),
            details=payload.get("details"),
        )
    except ValidationError as exc:
        raise ProtocolViolationError(f"Invalid progress_message payload: {exc}") from exc


def map_streamed_tokens(event: ServerSentEvent) -> StreamedTokens:
    payload = _require_output_type(_load_payload(event), "streamed_tokens")
    try:
        return StreamedTokens(delta=payload.get("delta", ""))
    except ValidationError as exc:
        raise ProtocolViolationError(f"Invalid streamed_tokens payload: {exc}") from exc


def map_final_state(event: ServerSentEvent) -> QueryAgentResponse:
    payload = _load_payload(event)
    if isinstance(payload, dict):
        payload = {k: v for k, v in payload.items() if k != "output_type"}
    try:
        return QueryAgentResponse.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolViolationError(f"Invalid final_state payload: {exc}") from exc


def map_server_sent_event(event: ServerSentEvent) -> StreamOutput:
    """Map one event to a domain message, raising for errors and unknown kinds."""
    if event.event == "error":
        handle_error(event.data)
    if event.event == "progress_message":
        return map_progress_message(event)
    if event.event == "streamed_tokens":
        return map_streamed_tokens(event)
    if event.event == "final_state":
        return map_final_state(event)
    raise ProtocolViolationError(f"Unexpected event type: {event.event}: {event.data}")


async def dispatch_events(
    events: AsyncGenerator[ServerSentEvent, None],
) -> AsyncIterator[StreamOutput]:
    """Yield a typed message per event, in arrival order.

    The event source is closed on every exit path, so a failure or an early
    stop by the consumer releases the underlying connection.
    """
    async with aclosing(events):
        async for event in events:
            try:
                output = map_server_sent_event(event)
            except ProtocolViolationError:
                logger.warning("sse_protocol_violation", event_type=event.event)
                raise
            yield output
