"""
TVMaze client for show status lookups. No API key required.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from wheretowatch.config import Settings
from wheretowatch.models import ShowStatus
from wheretowatch.titles import normalize

logger = logging.getLogger(__name__)

TVMAZE_BASE_URL = "https://api.tvmaze.com"


class TVMazeClient:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = TVMAZE_BASE_URL
        self.timeout = settings.request_timeout
        self._transport = transport

    async def lookup_status(self, title: str) -> Optional[ShowStatus]:
        """
        Look up a show by its normalized title.

        Returns None when TVMaze has no match or the request fails.
        """
        query = normalize(title)
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/singlesearch/shows",
                    params={"q": query},
                    timeout=self.timeout
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code != 404:
                logger.warning("TVMAZE: Lookup failed for '%s': %s", query, e)
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("TVMAZE: Lookup failed for '%s': %s", query, e)
            return None

        if not data:
            return None

        return ShowStatus(
            status=data.get("status"),
            external_id=str(data["id"]) if data.get("id") is not None else None,
            name=data.get("name"),
        )
