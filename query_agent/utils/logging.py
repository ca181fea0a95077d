"""structlog setup for the client.

The client is a library, so by default only the ``query_agent`` logger gets a
handler and records stop there. Applications that own the process (such as
``scripts/ask_agent.py``) may route the root logger instead.
"""

from __future__ import annotations

import logging
import sys

import structlog

_HANDLER_NAME = "query_agent"


def _build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    *,
    logger_name: str = "query_agent",
    replace_handlers: bool = False,
) -> logging.Handler:
    """Route structlog events through stdlib logging and attach a stdout handler.

    The handler goes on ``logger_name`` (``""`` for the root logger). Handlers
    other code installed there are kept unless ``replace_handlers`` is set;
    a handler from an earlier call is always swapped out.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(_build_formatter(log_format))

    target = logging.getLogger(logger_name or None)
    for existing in list(target.handlers):
        if replace_handlers or existing.get_name() == _HANDLER_NAME:
            target.removeHandler(existing)
    target.addHandler(handler)
    target.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    if logger_name:
        # records already handled here must not print twice via the root logger
        target.propagate = False

    # httpx logs every request at INFO; keep it behind our own events
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return handler


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
