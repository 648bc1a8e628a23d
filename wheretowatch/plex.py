"""
Plex library access: listing the TV section and writing labels.

Listing goes through plexapi (synchronous, done once before the
reconciliation starts). Label writes are async read-then-PUT requests so they can run
inside the event loop alongside the catalog lookups.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx
from plexapi.exceptions import NotFound
from plexapi.server import PlexServer

from wheretowatch.config import Settings
from wheretowatch.errors import LibraryError
from wheretowatch.models import LibraryItem, Provider

logger = logging.getLogger(__name__)

SHOW_SECTION_TYPE = "show"
PLEX_SHOW_TYPE = 2  # metadata type id for shows in edit requests


def _get_plex_headers(token: Optional[str] = None) -> dict:
    """Get common Plex API headers."""
    headers = {
        "Accept": "application/json",
        "X-Plex-Product": "wheretowatch",
    }
    if token:
        headers["X-Plex-Token"] = token
    return headers


def label_params(current: Sequence[str], labels: Sequence[Provider]) -> dict:
    """
    Build the edit parameters adding `labels` to an item.

    Plex replaces the whole label set with the indexed `label[i].tag.tag`
    entries it receives, so the item's current labels are sent first and
    new names are appended only if missing.
    """
    names = list(dict.fromkeys(current))
    for label in labels:
        if label.name not in names:
            names.append(label.name)

    params = {
        "type": PLEX_SHOW_TYPE,
        "label.locked": 1,
    }
    for i, name in enumerate(names):
        params[f"label[{i}].tag.tag"] = name
    return params


def parse_labels(payload: dict) -> list[str]:
    """Label names from a /library/metadata/{id} response."""
    metadata = (payload.get("MediaContainer") or {}).get("Metadata") or [{}]
    return [label["tag"] for label in metadata[0].get("Label") or [] if label.get("tag")]


class PlexLibrary:
    """One Plex TV library section."""

    def __init__(
        self,
        settings: Settings,
        server: PlexServer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = settings.plex_url
        self.token = settings.plex_token
        self.library = settings.plex_library
        self.timeout = settings.request_timeout
        self._server = server
        self._transport = transport

    @property
    def server(self) -> PlexServer:
        if self._server is None:
            logger.debug("PLEX: Connecting to %s", self.base_url)
            self._server = PlexServer(self.base_url, self.token, timeout=self.timeout)
        return self._server

    def list_sections(self) -> list[dict]:
        """All library sections, for --list-libraries."""
        try:
            sections = self.server.library.sections()
        except Exception as e:
            raise LibraryError(self.library, str(e)) from e
        return [
            {"key": str(section.key), "title": section.title, "type": section.type}
            for section in sections
        ]

    def _find_section(self):
        """Resolve the configured library by section key, then by title."""
        library = self.server.library
        if str(self.library).isdigit():
            try:
                return library.sectionByID(int(self.library))
            except NotFound:
                pass
        return library.section(self.library)

    def list_items(self) -> list[LibraryItem]:
        """List every show in the configured section, in library order."""
        try:
            section = self._find_section()
            if section.type != SHOW_SECTION_TYPE:
                raise LibraryError(self.library, f"section is a '{section.type}' library, not a TV library")
            shows = section.all()
        except LibraryError:
            raise
        except Exception as e:
            raise LibraryError(self.library, str(e)) from e

        items = [LibraryItem(id=str(show.ratingKey), title=show.title) for show in shows]
        logger.debug("PLEX: Section '%s' has %d shows", section.title, len(items))
        return items

    async def apply_labels(self, item_id: str, labels: Sequence[Provider]) -> None:
        """Add labels to a show, keeping its existing ones. Raises httpx.HTTPError on failure."""
        if not labels:
            return

        url = f"{self.base_url}/library/metadata/{item_id}"
        headers = _get_plex_headers(self.token)
        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            current = parse_labels(response.json())

            response = await client.put(
                url,
                headers=headers,
                params=label_params(current, labels),
                timeout=self.timeout
            )
            response.raise_for_status()

        logger.debug("PLEX: Labelled %s with %s", item_id, [label.name for label in labels])
