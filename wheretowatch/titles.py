"""
Show title normalization for metadata lookups.

Plex titles often carry a disambiguating year or an edition note that the
metadata services don't know about:

    "Doctor Who (2005)"              -> "Doctor Who"
    "Star Wars: Andor"               -> "Star Wars"
    "The Office (US)"                -> "The Office"
"""
import re

YEAR_PATTERN = re.compile(r"\s*\(\d{4}\)")
TRAILING_NOTE_PATTERN = re.compile(r"\s*\([^()]*\)\s*$")


def normalize(raw_title: str) -> str:
    """
    Reduce a library title to the main show name.

    Strips every 4-digit year parenthetical, keeps only the segment before
    the first colon and drops one trailing parenthetical annotation.
    Returns the input unchanged when nothing usable is left.
    """
    if not isinstance(raw_title, str) or not raw_title.strip():
        return raw_title

    title = YEAR_PATTERN.sub("", raw_title)

    head, _, subtitle = title.partition(":")
    if not head.strip():
        # ": Subtitle" style titles, use what follows the colon
        head = subtitle.partition(":")[0]

    head = TRAILING_NOTE_PATTERN.sub("", head).strip()
    return head or raw_title
