"""Command-line entry point for walk groups."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date as date_type
from typing import List, Optional

import structlog
import uvicorn

from .api import create_app
from .client import WalkGroupsClient
from .config import Settings
from .panel import GroupSuggestionsPanel
from .render import render_panel
from .store import InMemoryStore


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Review and accept walk grouping suggestions.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    suggestions = commands.add_parser("suggestions", help="Show accepted groups and new suggestions.")
    suggestions.add_argument("--date", help="ISO date (YYYY-MM-DD); defaults to today.")

    accept = commands.add_parser("accept", help="Accept a suggestion by its number in the list.")
    accept.add_argument("index", type=int, help="1-based suggestion number as shown by 'suggestions'.")
    accept.add_argument("--date", help="ISO date (YYYY-MM-DD); defaults to today.")

    ungroup = commands.add_parser("ungroup", help="Delete an accepted group.")
    ungroup.add_argument("group_id", type=int)
    ungroup.add_argument("--date", help="ISO date (YYYY-MM-DD); defaults to today.")

    serve = commands.add_parser("serve", help="Run the walk groups API.")
    serve.add_argument("--host", help="Bind address.")
    serve.add_argument("--port", type=int, help="Bind port.")

    return parser.parse_args(argv)


def resolve_date(raw: Optional[str], settings: Settings) -> date_type:
    """Determine which date to work on."""
    if not raw:
        return settings.today()
    try:
        return date_type.fromisoformat(raw)
    except ValueError as exc:
        raise SystemExit(f"Invalid --date: {raw}") from exc


async def run(args: argparse.Namespace, settings: Settings, client: Optional[WalkGroupsClient] = None) -> int:
    """Execute one panel command and print the resulting panel."""
    alerts: List[str] = []
    panel = GroupSuggestionsPanel(
        client or WalkGroupsClient(settings),
        target=resolve_date(args.date, settings),
        alert=alerts.append,
        sync_mode=settings.sync_mode,
    )
    await panel.refresh()

    if args.command == "accept":
        visible = panel.state.visible_suggestions
        if not 1 <= args.index <= len(visible):
            print(f"Error: no suggestion numbered {args.index}", file=sys.stderr)
            return 1
        await panel.accept(visible[args.index - 1])
    elif args.command == "ungroup":
        await panel.ungroup(args.group_id)

    for message in alerts:
        print(f"Error: {message}", file=sys.stderr)

    output = render_panel(panel.state)
    if output is None:
        print(f"No walk groups to show for {panel.target.isoformat()}.")
    else:
        print(output)
    return 1 if alerts or panel.state.error else 0


def serve(args: argparse.Namespace, settings: Settings) -> int:
    """Run the API with uvicorn."""
    store = InMemoryStore()
    if settings.seed_file is not None:
        store.load_seed(settings.seed_file)
    uvicorn.run(
        create_app(store, settings),
        host=args.host or settings.server_host,
        port=args.port or settings.server_port,
    )
    return 0


def cli(argv: Optional[List[str]] = None) -> int:
    """Console script entrypoint."""
    args = parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        settings = Settings()
    except Exception as exc:
        LOGGER.exception("settings.error", error=str(exc))
        return 2

    if args.command == "serve":
        return serve(args, settings)

    try:
        return asyncio.run(run(args, settings))
    except Exception as exc:  # pragma: no cover - top level
        LOGGER.exception("cli.failed", error=str(exc))
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
