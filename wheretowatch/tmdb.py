from __future__ import annotations

import logging
from typing import Optional

import httpx

from wheretowatch.config import Settings
from wheretowatch.models import ShowStatus
from wheretowatch.titles import normalize

logger = logging.getLogger(__name__)


class TMDBClient:
    """TMDB as the show status source (METADATA_SOURCE=tmdb)."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = settings.tmdb_base_url.rstrip("/")
        self.api_key = settings.tmdb_api_key
        self.timeout = settings.request_timeout
        self._transport = transport

    async def _request(self, endpoint: str, params: dict | None = None) -> dict:
        """Make a request to the TMDB API."""
        if params is None:
            params = {}
        params["api_key"] = self.api_key

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.get(
                f"{self.base_url}{endpoint}",
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()

    async def search_tv(self, query: str) -> dict:
        """Search for TV shows."""
        return await self._request("/search/tv", {"query": query})

    async def get_tv(self, tv_id: int) -> dict:
        """Get TV show details."""
        return await self._request(f"/tv/{tv_id}")

    async def lookup_status(self, title: str) -> Optional[ShowStatus]:
        """Status of the top search result for the normalized title, or None."""
        query = normalize(title)
        try:
            results = (await self.search_tv(query)).get("results") or []
            if not results:
                return None
            details = await self.get_tv(results[0]["id"])
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning("TMDB: Lookup failed for '%s': %s", query, e)
            return None

        return ShowStatus(
            status=details.get("status"),
            external_id=str(details.get("id")),
            name=details.get("name"),
        )
