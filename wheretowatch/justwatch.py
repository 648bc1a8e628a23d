"""
JustWatch GraphQL client: provider catalog and title search.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx

from wheretowatch.config import Settings
from wheretowatch.errors import CatalogError
from wheretowatch.models import MatchedShow, Offer, Provider

logger = logging.getLogger(__name__)

JUSTWATCH_GRAPHQL_URL = "https://apis.justwatch.com/graphql"
SEARCH_RESULT_COUNT = 4

GET_PACKAGES_QUERY = """
query GetPackages($platform: Platform! = WEB, $country: Country!) {
    packages(country: $country, platform: $platform, includeAddons: false) {
        clearName
        shortName
        technicalName
        packageId
        monetizationTypes
    }
}
"""

GET_SUGGESTED_TITLES_QUERY = """
query GetSuggestedTitles($country: Country!, $language: Language!, $first: Int!, $filter: TitleFilter) {
    popularTitles(country: $country, first: $first, filter: $filter) {
        edges {
            node {
                id
                objectType
                objectId
                content(country: $country, language: $language) {
                    title
                    originalReleaseYear
                    fullPath
                }
                offers(country: $country, platform: WEB) {
                    monetizationType
                    package {
                        packageId
                        shortName
                        clearName
                    }
                }
            }
        }
    }
}
"""


def parse_offer(raw: dict) -> Offer:
    package = raw.get("package") or {}
    return Offer(
        provider_id=int(package["packageId"]),
        monetization_type=raw.get("monetizationType") or "",
        short_name=package.get("shortName") or "",
        clear_name=package.get("clearName") or "",
    )


def parse_best_match(data: dict, providers: Sequence[Provider]) -> Optional[MatchedShow]:
    """
    Pick the first search result and narrow its offers to `providers`.

    A result without any offers is not a match. A result whose offers are all
    on unmonitored providers is a match with no offers.
    """
    edges = ((data.get("popularTitles") or {}).get("edges")) or []
    if not edges:
        return None

    node = edges[0].get("node") or {}
    raw_offers = node.get("offers") or []
    if not raw_offers:
        return None

    monitored = {provider.id for provider in providers}
    offers = [offer for offer in map(parse_offer, raw_offers) if offer.provider_id in monitored]

    content = node.get("content") or {}
    return MatchedShow(
        title=content.get("title") or "",
        external_id=str(node.get("objectId") or node.get("id") or ""),
        offers=offers,
    )


class JustWatchClient:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.country = settings.justwatch_country
        self.language = settings.justwatch_language
        self.timeout = settings.request_timeout
        self._transport = transport

    async def _request(self, operation_name: str, query: str, variables: dict) -> dict:
        """POST a GraphQL operation and return its `data` member."""
        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.post(
                JUSTWATCH_GRAPHQL_URL,
                headers={
                    "Content-Type": "application/json",
                    "Referer": "https://www.justwatch.com/",
                },
                json={
                    "operationName": operation_name,
                    "variables": variables,
                    "query": query,
                },
                timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()

        if payload.get("errors"):
            message = payload["errors"][0].get("message", "unknown error")
            raise httpx.HTTPError(f"JustWatch {operation_name} failed: {message}")
        return payload.get("data") or {}

    async def list_providers(self) -> list[Provider]:
        """Every package JustWatch lists for the configured country."""
        try:
            data = await self._request(
                "GetPackages",
                GET_PACKAGES_QUERY,
                {"platform": "WEB", "country": self.country}
            )
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogError(self.country, str(e)) from e

        providers = [
            Provider(id=int(package["packageId"]), name=package["clearName"])
            for package in data.get("packages") or []
        ]
        logger.debug("JUSTWATCH: %d packages available in %s", len(providers), self.country)
        return providers

    async def find_best_match(
        self,
        title: str,
        providers: Sequence[Provider],
    ) -> Optional[MatchedShow]:
        """Search the catalog for `title`; raises httpx.HTTPError on transport failure."""
        data = await self._request(
            "GetSuggestedTitles",
            GET_SUGGESTED_TITLES_QUERY,
            {
                "country": self.country,
                "language": self.language,
                "first": SEARCH_RESULT_COUNT,
                "filter": {"searchQuery": title},
            }
        )
        match = parse_best_match(data, providers)
        if match is None:
            logger.debug("JUSTWATCH: No match for '%s'", title)
        return match
