"""
Reconciliation of the Plex library against the streaming catalog.

For each show, in library order:
1. Look up availability (JustWatch) and status (TVMaze/TMDB) concurrently
2. Skip shows without a catalog match
3. Label the show with its monitored providers, plus "Ended" if finished
4. Collect the match for the report

A failure for one show is logged and never stops the run.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from wheretowatch.models import (
    LibraryItem,
    MatchedShow,
    Provider,
    ReconciliationResult,
    ShowStatus,
    ended_label,
)
from wheretowatch.sources import AvailabilitySource, LabelWriter, MetadataSource

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class RunStats:
    processed: int = 0
    matched: int = 0
    labelled: int = 0
    label_failures: int = 0
    lookup_failures: int = 0


def build_labels(
    show: MatchedShow,
    providers: Sequence[Provider],
    ended: bool,
    ended_marker: Optional[Provider] = None,
) -> list[Provider]:
    """Monitored providers the show is on, in configured order, plus the ended marker."""
    offered = show.provider_ids()
    labels = [provider for provider in providers if provider.id in offered]
    if ended:
        labels.append(ended_marker or ended_label())
    return labels


class Reconciler:
    def __init__(
        self,
        availability: AvailabilitySource,
        metadata: MetadataSource,
        labels: Optional[LabelWriter] = None,
        ended_name: str = "Ended",
        dry_run: bool = False,
    ):
        self.availability = availability
        self.metadata = metadata
        self.labels = labels
        self.ended_marker = ended_label(ended_name)
        self.dry_run = dry_run
        self.stats = RunStats()

    async def _lookup(
        self,
        item: LibraryItem,
        providers: Sequence[Provider],
    ) -> tuple[Optional[MatchedShow], Optional[ShowStatus]]:
        """Run both lookups for one show and wait for both."""
        match, status = await asyncio.gather(
            self.availability.find_best_match(item.title, providers),
            self.metadata.lookup_status(item.title),
            return_exceptions=True,
        )

        if isinstance(match, BaseException):
            if not isinstance(match, Exception):
                raise match
            self.stats.lookup_failures += 1
            logger.error("PIPELINE: Availability lookup failed for '%s': %s", item.title, match)
            match = None

        if isinstance(status, BaseException):
            if not isinstance(status, Exception):
                raise status
            logger.warning("PIPELINE: Status lookup failed for '%s': %s", item.title, status)
            status = None

        return match, status

    async def _write_labels(self, item: LibraryItem, labels: list[Provider]) -> None:
        names = [label.name for label in labels]
        if self.dry_run:
            logger.info("PIPELINE: Would label '%s' with %s", item.title, names)
            return
        try:
            await self.labels.apply_labels(item.id, labels)
        except Exception as e:
            self.stats.label_failures += 1
            logger.error("PIPELINE: Labelling '%s' (%s) failed: %s", item.title, item.id, e)
            return
        self.stats.labelled += 1
        logger.debug("PIPELINE: Labelled '%s' with %s", item.title, names)

    async def process_item(
        self,
        item: LibraryItem,
        providers: Sequence[Provider],
    ) -> Optional[ReconciliationResult]:
        match, status = await self._lookup(item, providers)
        self.stats.processed += 1

        if match is None:
            return None
        self.stats.matched += 1

        ended = status is not None and status.ended
        labels = build_labels(match, providers, ended, self.ended_marker)

        # Empty sets are never written, so manually applied labels stay untouched
        if labels and (self.labels is not None or self.dry_run):
            await self._write_labels(item, labels)

        return ReconciliationResult(show=match, ended=ended)

    async def run(
        self,
        items: Sequence[LibraryItem],
        providers: Sequence[Provider],
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[ReconciliationResult]:
        """Process every item sequentially and return the matches in library order."""
        results: list[ReconciliationResult] = []
        total = len(items)

        for index, item in enumerate(items, start=1):
            result = await self.process_item(item, providers)
            if result is not None:
                results.append(result)
            if on_progress is not None:
                on_progress(index, total)

        logger.info(
            "PIPELINE: Processed %d shows, %d matched, %d labelled, %d label failures",
            self.stats.processed, self.stats.matched, self.stats.labelled, self.stats.label_failures
        )
        return results
