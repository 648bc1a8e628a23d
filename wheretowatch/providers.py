"""
Resolve configured provider names to JustWatch package ids.

Matching is exact and case-sensitive against the catalog's clear name, so
"Netflix" matches but "netflix" or "Netflix " do not. Near misses are only
reported as suggestions.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from rapidfuzz import fuzz, process

from wheretowatch.models import Provider
from wheretowatch.sources import AvailabilitySource

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 5


@dataclass
class Resolution:
    providers: list[Provider] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    suggestions: dict[str, list[str]] = field(default_factory=dict)


def suggest_names(name: str, catalog_names: Sequence[str], limit: int = SUGGESTION_LIMIT) -> list[str]:
    """Closest catalog names to an unresolved name, else the first few catalog entries."""
    matches = process.extract(name, catalog_names, scorer=fuzz.WRatio, limit=limit, score_cutoff=50)
    if matches:
        return [match[0] for match in matches]
    return list(catalog_names[:limit])


def resolve_names(configured_names: Sequence[str], catalog: Sequence[Provider]) -> Resolution:
    """Map names onto catalog providers, keeping the configured order."""
    by_name: dict[str, Provider] = {}
    for provider in catalog:
        # First entry wins if the catalog repeats a clear name
        by_name.setdefault(provider.name, provider)

    resolution = Resolution()
    seen_ids = set()
    for name in configured_names:
        provider = by_name.get(name)
        if provider is None:
            if name not in resolution.unresolved:
                resolution.unresolved.append(name)
            continue
        if provider.id in seen_ids:
            continue
        seen_ids.add(provider.id)
        resolution.providers.append(provider)

    if resolution.unresolved:
        catalog_names = list(by_name)
        resolution.suggestions = {
            name: suggest_names(name, catalog_names) for name in resolution.unresolved
        }
    return resolution


class ProviderDirectory:
    def __init__(self, source: AvailabilitySource):
        self.source = source

    async def resolve(self, configured_names: Sequence[str]) -> Resolution:
        """
        Fetch the catalog and resolve `configured_names`.

        Unresolved names are logged as warnings, they don't stop the run.
        Catalog fetch failures propagate.
        """
        catalog = await self.source.list_providers()
        resolution = resolve_names(configured_names, catalog)

        for name in resolution.unresolved:
            hint = ", ".join(resolution.suggestions.get(name, []))
            logger.warning("PROVIDERS: '%s' not found in catalog (available: %s)", name, hint or "none")

        logger.info(
            "PROVIDERS: Monitoring %s",
            ", ".join(f"{p.name} ({p.id})" for p in resolution.providers) or "nothing"
        )
        return resolution
