"""Query the agent service from the command line.

Usage:
  # Single answer
  python scripts/ask_agent.py "Which products ship to Norway?" -c Products

  # Stream progress and tokens as they arrive
  python scripts/ask_agent.py "Summarise recent reviews" -c Reviews --stream

  # Search-only mode, three pages of ten results over the same searches
  python scripts/ask_agent.py "red running shoes" -c Products --search --limit 10 --pages 3

Reads WEAVIATE_URL / WEAVIATE_API_KEY (and optional QUERY_AGENT_* settings)
from the environment or a .env file.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import httpx
from pydantic import ValidationError

from query_agent.config import get_settings
from query_agent.connection import StaticConnection
from query_agent.models.responses import ProgressMessage, QueryAgentResponse, StreamedTokens
from query_agent.services.agent import QueryAgent
from query_agent.utils.exceptions import QueryAgentClientError
from query_agent.utils.logging import setup_logging


async def _answer(agent: QueryAgent, query: str) -> None:
    response = await agent.ask(query)
    response.display()


async def _stream(agent: QueryAgent, query: str) -> None:
    async for message in agent.ask_stream(query):
        if isinstance(message, ProgressMessage):
            print(f"[{message.stage}] {message.message}", file=sys.stderr)
        elif isinstance(message, StreamedTokens):
            print(message.delta, end="", flush=True)
        elif isinstance(message, QueryAgentResponse):
            print()
            print(f"Sources: {[s.object_id for s in message.sources]}", file=sys.stderr)


async def _search(agent: QueryAgent, query: str, limit: int, pages: int) -> None:
    page = await agent.search(query, limit=limit)
    for number in range(pages):
        print(f"=== Page {number + 1} ===")
        print(json.dumps(page.search_results, indent=2, default=str))
        if number + 1 < pages:
            page = await page.next(limit=limit, offset=(number + 1) * limit)


async def _main(args: argparse.Namespace) -> None:
    settings = get_settings()
    setup_logging(
        settings.LOG_LEVEL,
        args.log_format or settings.LOG_FORMAT,
        logger_name="",
        replace_handlers=True,
    )

    async with QueryAgent(
        StaticConnection.from_settings(settings),
        collections=args.collection,
        system_prompt=args.system_prompt,
        settings=settings,
    ) as agent:
        if args.search:
            await _search(agent, args.query, args.limit, args.pages)
        elif args.stream:
            await _stream(agent, args.query)
        else:
            await _answer(agent, args.query)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Ask the Weaviate query agent a question")
    parser.add_argument("query", help="Natural-language query")
    parser.add_argument(
        "-c", "--collection",
        action="append",
        required=True,
        help="Collection to query (repeatable)",
    )
    parser.add_argument("--system-prompt", default=None)
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--stream", action="store_true", help="Stream progress and tokens")
    mode.add_argument("--search", action="store_true", help="Search-only mode")
    parser.add_argument("--limit", type=int, default=20, help="Results per page in search mode")
    parser.add_argument("--pages", type=int, default=1, help="Pages to fetch in search mode")
    parser.add_argument("--log-format", choices=["json", "console"], default=None)
    args = parser.parse_args(argv)

    try:
        asyncio.run(_main(args))
    except QueryAgentClientError as e:
        print(f"Query agent error: {e}", file=sys.stderr)
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"Network error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
