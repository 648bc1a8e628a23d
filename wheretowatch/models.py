"""
Records passed between the library, catalog and report layers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

# JustWatch package ids are positive, so this can never clash with a real provider
ENDED_PROVIDER_ID = -1
ENDED_STATUS = "Ended"


@dataclass(frozen=True)
class LibraryItem:
    """A show from the Plex TV section."""
    id: str         # Plex ratingKey
    title: str


@dataclass(frozen=True)
class Provider:
    """A streaming provider (JustWatch package). Identity is the id only."""
    id: int
    name: str = field(compare=False)


@dataclass(frozen=True)
class Offer:
    """One provider + monetization type availability record."""
    provider_id: int
    monetization_type: str   # FLATRATE, FREE, ADS, RENT, BUY...
    short_name: str
    clear_name: str


@dataclass
class MatchedShow:
    """Best catalog match for a library item, offers already narrowed to monitored providers."""
    title: str
    external_id: str
    offers: list[Offer] = field(default_factory=list)

    def provider_ids(self) -> set[int]:
        return {offer.provider_id for offer in self.offers}

    def has_provider(self, provider_id: int) -> bool:
        return any(offer.provider_id == provider_id for offer in self.offers)


@dataclass
class ShowStatus:
    """Metadata record returned by TVMaze/TMDB."""
    status: Optional[str]
    external_id: Optional[str] = None
    name: Optional[str] = None

    @property
    def ended(self) -> bool:
        return self.status == ENDED_STATUS


@dataclass
class ReconciliationResult:
    show: MatchedShow
    ended: bool = False


def ended_label(name: str = ENDED_STATUS) -> Provider:
    """Synthetic label marking a show that has finished airing."""
    return Provider(id=ENDED_PROVIDER_ID, name=name)
