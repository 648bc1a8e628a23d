"""
Interfaces (Protocols) for the services the reconciliation depends on.

Plex, JustWatch and TVMaze/TMDB each have one implementation; another media
server or catalog only needs to provide the same methods.
"""
from __future__ import annotations

from typing import Optional, Protocol, Sequence

from wheretowatch.models import LibraryItem, MatchedShow, Provider, ShowStatus


class LibrarySource(Protocol):
    """Media server library listing."""

    def list_items(self) -> list[LibraryItem]:
        """List every show of the configured library section."""
        ...


class AvailabilitySource(Protocol):
    """Streaming catalog."""

    async def list_providers(self) -> list[Provider]:
        """Full provider catalog for the configured country."""
        ...

    async def find_best_match(
        self,
        title: str,
        providers: Sequence[Provider],
    ) -> Optional[MatchedShow]:
        """Best textual match with offers narrowed to `providers`, or None."""
        ...


class MetadataSource(Protocol):
    """Show metadata service, best effort."""

    async def lookup_status(self, title: str) -> Optional[ShowStatus]:
        """Return the show's status record, or None if unknown."""
        ...


class LabelWriter(Protocol):
    """Writes labels onto a library item."""

    async def apply_labels(self, item_id: str, labels: Sequence[Provider]) -> None:
        """Add `labels` to the item. Raises on failure, no-op when empty."""
        ...
