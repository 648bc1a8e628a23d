"""
Label Plex TV shows with the streaming providers they are available on.

Reads the Plex TV library, looks every show up on JustWatch and TVMaze (or
TMDB), adds a label per monitored provider (plus "Ended" for finished
shows) and prints an availability table.

Configuration comes from environment variables or a .env file:
    PLEX_URL=http://localhost:32400
    PLEX_TOKEN=your_plex_token
    PLEX_LIBRARY="TV Shows"
    JUSTWATCH_COUNTRY=US
    PROVIDERS='["Netflix", "Disney Plus", "Max"]'
    TABLE_MODE=all            # all, streamable or per-provider
    METADATA_SOURCE=tvmaze    # tvmaze or tmdb (needs TMDB_API_KEY)

Usage:
    wheretowatch
    wheretowatch --dry-run --table-mode streamable
    wheretowatch --list-providers
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskProgressColumn, TextColumn

from wheretowatch import report
from wheretowatch.config import MetadataSourceName, Settings, TableMode, load_settings
from wheretowatch.errors import WhereToWatchError
from wheretowatch.justwatch import JustWatchClient
from wheretowatch.models import LibraryItem, Provider, ReconciliationResult
from wheretowatch.pipeline import Reconciler
from wheretowatch.plex import PlexLibrary
from wheretowatch.providers import ProviderDirectory
from wheretowatch.sources import MetadataSource
from wheretowatch.tmdb import TMDBClient
from wheretowatch.tvmaze import TVMazeClient

logger = logging.getLogger("wheretowatch")

err_console = Console(stderr=True)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def create_metadata_source(settings: Settings) -> MetadataSource:
    if settings.metadata_source is MetadataSourceName.TMDB:
        settings.require("tmdb_api_key")
        return TMDBClient(settings)
    return TVMazeClient(settings)


def create_progress(disable: bool = False) -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(bar_width=40),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        console=err_console,
        disable=disable,
    )


async def reconcile(
    settings: Settings,
    items: Sequence[LibraryItem],
    justwatch: JustWatchClient,
    metadata: MetadataSource,
    labels: Optional[PlexLibrary],
    dry_run: bool = False,
    show_progress: bool = True,
) -> tuple[list[Provider], list[ReconciliationResult]]:
    """Resolve providers, then run the reconciliation over `items`."""
    resolution = await ProviderDirectory(justwatch).resolve(settings.providers)
    if not resolution.providers:
        logger.warning(
            "PROVIDERS: None of the configured providers were found in the JustWatch catalog "
            "for %s, only '%s' labels will be written",
            settings.justwatch_country, settings.ended_label
        )

    reconciler = Reconciler(
        availability=justwatch,
        metadata=metadata,
        labels=labels,
        ended_name=settings.ended_label,
        dry_run=dry_run,
    )

    with create_progress(disable=not show_progress) as progress:
        task = progress.add_task("Processing shows", total=len(items))
        results = await reconciler.run(
            items,
            resolution.providers,
            on_progress=lambda done, total: progress.update(task, completed=done),
        )

    return resolution.providers, results


def print_tables(tables: list[report.RenderedTable], color: bool) -> None:
    for table in tables:
        print(f"\n{table.title}:")
        if not table.rows:
            print("  (no shows)")
            continue
        print(table.render(color=color))


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wheretowatch",
        description="Label Plex TV shows with their streaming availability",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Read settings from this file instead of ./.env"
    )
    parser.add_argument(
        "--table-mode",
        choices=[mode.value for mode in TableMode],
        help="Override TABLE_MODE"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show which labels would be written without touching Plex"
    )
    parser.add_argument(
        "--no-labels",
        action="store_true",
        help="Only print the report, never write labels"
    )
    parser.add_argument(
        "--list-libraries",
        action="store_true",
        help="List all Plex library sections and exit"
    )
    parser.add_argument(
        "--list-providers",
        action="store_true",
        help="List the provider names JustWatch knows for JUSTWATCH_COUNTRY and exit"
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Print tables without colors"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only warnings and errors, no progress bar")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    overrides = {}
    if args.table_mode:
        overrides["table_mode"] = args.table_mode
    settings = load_settings(args.env_file, **overrides)

    justwatch = JustWatchClient(settings)
    if args.list_providers:
        providers = asyncio.run(justwatch.list_providers())
        for name in sorted({provider.name for provider in providers}, key=str.casefold):
            print(name)
        return 0

    settings.require("plex_token")
    plex = PlexLibrary(settings)

    if args.list_libraries:
        for section in plex.list_sections():
            print(f"  - {section['title']} (key {section['key']}, {section['type']})")
        return 0

    settings.require("providers")
    metadata = create_metadata_source(settings)

    logger.info("PLEX: Fetching TV shows from library '%s'", settings.plex_library)
    items = plex.list_items()
    logger.info("PLEX: Found %d TV shows", len(items))

    providers, results = asyncio.run(reconcile(
        settings,
        items,
        justwatch,
        metadata,
        labels=None if args.no_labels else plex,
        dry_run=args.dry_run,
        show_progress=not args.quiet,
    ))
    logger.info("Matched %d of %d shows", len(results), len(items))

    color = not args.no_color and sys.stdout.isatty()
    print_tables(report.build(results, providers, settings.table_mode), color=color)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        return run(args)
    except WhereToWatchError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
