from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Sequence

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from wheretowatch.config import Settings  # noqa: E402
from wheretowatch.models import LibraryItem, MatchedShow, Offer, Provider, ShowStatus  # noqa: E402


class FakeAvailability:
    """Catalog answering from a title -> MatchedShow (or exception) mapping."""

    def __init__(self, matches: dict | None = None, catalog: list[Provider] | None = None):
        self.matches = matches or {}
        self.catalog = catalog or []
        self.searches: list[str] = []

    async def list_providers(self) -> list[Provider]:
        return list(self.catalog)

    async def find_best_match(self, title: str, providers: Sequence[Provider]) -> Optional[MatchedShow]:
        self.searches.append(title)
        match = self.matches.get(title)
        if isinstance(match, Exception):
            raise match
        if match is None:
            return None
        monitored = {provider.id for provider in providers}
        return MatchedShow(
            title=match.title,
            external_id=match.external_id,
            offers=[offer for offer in match.offers if offer.provider_id in monitored],
        )


class FakeMetadata:
    def __init__(self, statuses: dict | None = None):
        self.statuses = statuses or {}
        self.lookups: list[str] = []

    async def lookup_status(self, title: str) -> Optional[ShowStatus]:
        self.lookups.append(title)
        status = self.statuses.get(title)
        if isinstance(status, Exception):
            raise status
        if status is None:
            return None
        return ShowStatus(status=status)


class FakeLabelWriter:
    """Keeps labels as a set per item, like Plex does."""

    def __init__(self, fail_for: set[str] | None = None):
        self.calls: list[tuple[str, list[Provider]]] = []
        self.state: dict[str, set[str]] = {}
        self.fail_for = fail_for or set()

    async def apply_labels(self, item_id: str, labels: Sequence[Provider]) -> None:
        self.calls.append((item_id, list(labels)))
        if item_id in self.fail_for:
            raise RuntimeError(f"Plex refused {item_id}")
        if labels:
            self.state.setdefault(item_id, set()).update(label.name for label in labels)


def offer(provider_id: int, monetization_type: str = "FLATRATE", name: str = "") -> Offer:
    return Offer(
        provider_id=provider_id,
        monetization_type=monetization_type,
        short_name=name[:3].lower(),
        clear_name=name,
    )


def show(title: str, *provider_ids: int, external_id: str = "tss1") -> MatchedShow:
    return MatchedShow(title=title, external_id=external_id, offers=[offer(pid) for pid in provider_ids])


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        plex_url="http://plex.test:32400/",
        plex_token="plex-token",
        plex_library="2",
        providers=["NetFlix", "Hulu"],
        tmdb_api_key="tmdb-key",
    )


@pytest.fixture()
def netflix() -> Provider:
    return Provider(id=8, name="NetFlix")


@pytest.fixture()
def hulu() -> Provider:
    return Provider(id=15, name="Hulu")


@pytest.fixture()
def library() -> list[LibraryItem]:
    return [
        LibraryItem(id="1", title="Show X"),
        LibraryItem(id="2", title="Show Y (2020)"),
    ]
