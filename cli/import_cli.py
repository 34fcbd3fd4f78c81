#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
import_cli.py
One-shot import of YouTube search results into the video catalogue.

Runs the same import as POST /videos/fetch against the configured database,
without starting the web server, and prints a summary table.

Exit codes: 0 on success, 1 when nothing was imported or the YouTube search
failed, 2 on configuration errors.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from config import config
from db.database import close_db, get_session, init_db
from db.repository import VideoRepository
from exceptions import APIConfigurationError, ExternalServiceError, NotFoundError
from logging_config import StructuredLogger, setup_logging
from services.catalog import VideoCatalogService
from services.youtube_api import YouTubeAPIClient

logger = StructuredLogger(__name__)

EXIT_OK = 0
EXIT_IMPORT_FAILED = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="videocatalog-import",
        description="Import videos from the YouTube Data API into the catalogue."
    )
    parser.add_argument("--database-url", help=f"SQLAlchemy database URL (default: {config.DATABASE_URL})")
    parser.add_argument("--api-key", help=f"YouTube API key (default: ${config.API_KEY_ENV_VAR})")
    parser.add_argument("--query", help=f"Search query (default: {config.SEARCH_QUERY!r})")
    parser.add_argument("--max-results", type=int, help=f"Maximum search results (default: {config.MAX_SEARCH_RESULTS})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to the console")
    return parser


def show_summary(console: Console, count: int, api_client: YouTubeAPIClient) -> None:
    """Print the import result and the API usage as a table."""
    stats = api_client.get_api_stats()
    table = Table(show_header=True, header_style="bold magenta", border_style="dim")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Videos imported", str(count))
    table.add_row("API calls", str(stats["api_calls_count"]))
    table.add_row("Quota used (estimated)", str(stats["api_quota_used_estimated"]))
    table.add_row("Durations unavailable", str(stats["failed_detail_lookups"]))
    console.print(table)


async def run_import(api_client: YouTubeAPIClient) -> int:
    """Run the import inside a single database session and return the count."""
    sessions = get_session()
    session = next(sessions)
    try:
        service = VideoCatalogService(VideoRepository(session))
        return await service.import_videos(api_client)
    finally:
        sessions.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the ``videocatalog-import`` command."""
    load_dotenv()
    config.load_from_env()
    args = build_parser().parse_args(argv)
    console = Console(stderr=True)

    # Logs go to the rotating file; the console shows the rich summary
    setup_logging(log_level_console=logging.DEBUG if args.verbose else logging.WARNING)

    if args.query:
        config.SEARCH_QUERY = args.query
    if args.max_results is not None:
        config.MAX_SEARCH_RESULTS = args.max_results

    try:
        api_client = YouTubeAPIClient(args.api_key or config.API_KEY)
    except APIConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/] {e.message}")
        console.print(f"Set {config.API_KEY_ENV_VAR} or pass --api-key.")
        return EXIT_CONFIG_ERROR

    init_db(args.database_url)
    console.print(f"[bold blue]Importing[/] videos for [cyan]{config.SEARCH_QUERY!r}[/] "
                  f"({config.SEARCH_REGION_CODE}, {config.SEARCH_PUBLISHED_AFTER} to {config.SEARCH_PUBLISHED_BEFORE})")
    try:
        count = asyncio.run(run_import(api_client))
    except NotFoundError as e:
        console.print(f"[yellow]{e.message}[/]")
        return EXIT_IMPORT_FAILED
    except ExternalServiceError as e:
        logger.error(f"Import failed: {e}", exc_info=False)
        console.print(f"[bold red]Import failed:[/] {e.message}")
        return EXIT_IMPORT_FAILED
    except KeyboardInterrupt:
        console.print("\n[yellow]Import interrupted by user.[/]")
        return 130
    finally:
        close_db()

    console.print(f"[bold green]{count} videos were added to the database.[/]")
    show_summary(console, count, api_client)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
