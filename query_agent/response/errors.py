"""Translate failed responses and ``error`` events into exceptions."""

from __future__ import annotations

import json
from typing import Any, NoReturn

from query_agent.utils.exceptions import QueryAgentError, QueryAgentTransportError


def _load_json(response_text: str) -> Any:
    try:
        return json.loads(response_text)
    except (json.JSONDecodeError, TypeError):
        return None


def handle_error(response_text: str, status_code: int | None = None) -> NoReturn:
    """Raise the error described by ``response_text``.

    A body of the form ``{"error": {"message", "code", "details"?}}`` becomes a
    ``QueryAgentError``; anything else is surfaced verbatim in a
    ``QueryAgentTransportError``.
    """
    payload = _load_json(response_text)
    error = payload.get("error") if isinstance(payload, dict) else None

    if isinstance(error, dict):
        raise QueryAgentError(
            message=str(error.get("message", "")),
            code=str(error.get("code", "")),
            details=error.get("details"),
        )

    raise QueryAgentTransportError(
        f"Query agent failed. {response_text}",
        response_text=response_text,
        status_code=status_code,
    )
