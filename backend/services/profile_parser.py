"""nCore profile page parser.

Turns a fetched profile page into a ProfileData snapshot. Parsing is
best effort: labels we don't know are ignored, and values that fail to
convert leave the field at its zero value instead of raising.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable

from bs4 import BeautifulSoup

from models.profile_data import ProfileData

logger = logging.getLogger(__name__)

# Label cells on the profile page; the value is the next sibling element
LABEL_SELECTOR = ".userbox_tartalom_mini .profil_jobb_elso2"
# Section headers like "Seedelt torrentek (12)"
SEEDING_SELECTOR = ".lista_mini_fej"

SEEDING_COUNT_RE = re.compile(r"\((\d+)\)")

# Trailing punctuation, e.g. "42." for a rank
_TRAILING_PUNCT = ".:,;"
# Thousands separators, e.g. "1 234" or "1.234"
_SEPARATORS = re.compile(r"[\s,.]")


def parse_int(value: str) -> int:
    """Parse an integer from page text, returning 0 when it can't be read."""
    cleaned = _SEPARATORS.sub("", value.strip().rstrip(_TRAILING_PUNCT))
    try:
        return int(cleaned)
    except ValueError:
        logger.debug(f"Could not parse integer from {value!r}")
        return 0


def _set_rank(profile: ProfileData, value: str) -> None:
    profile.rank = parse_int(value)


def _set_upload(profile: ProfileData, value: str) -> None:
    profile.upload = value


def _set_current_upload(profile: ProfileData, value: str) -> None:
    profile.current_upload = value


def _set_current_download(profile: ProfileData, value: str) -> None:
    profile.current_download = value


def _set_points(profile: ProfileData, value: str) -> None:
    profile.points = parse_int(value)


# Closed set of recognized labels; anything else is skipped
FIELD_SETTERS: dict[str, Callable[[ProfileData, str], None]] = {
    "Helyezés:": _set_rank,
    "Feltöltés:": _set_upload,
    "Aktuális feltöltés:": _set_current_upload,
    "Aktuális letöltés:": _set_current_download,
    "Pontok száma:": _set_points,
}


def parse_seeding_count(text: str) -> int:
    """Extract the parenthesized count from text like "Seeding (12)"."""
    match = SEEDING_COUNT_RE.search(text)
    if not match:
        return 0
    return int(match.group(1))


def parse_profile(
    doc: BeautifulSoup,
    owner: str,
    observed_at: datetime | None = None,
) -> ProfileData:
    """Extract a ProfileData snapshot from a parsed profile page.

    Args:
        doc: Parsed profile page
        owner: Display name of the account the page belongs to
        observed_at: Capture time; defaults to now (UTC)

    Returns:
        ProfileData with every field that could be located; the rest stay zero
    """
    profile = ProfileData(
        owner=owner,
        timestamp=observed_at or datetime.now(timezone.utc),
    )

    for label_elem in doc.select(LABEL_SELECTOR):
        setter = FIELD_SETTERS.get(label_elem.get_text(strip=True))
        if setter is None:
            continue
        value_elem = label_elem.find_next_sibling()
        value = value_elem.get_text(strip=True) if value_elem else ""
        setter(profile, value)

    # Last matching header wins
    for header in doc.select(SEEDING_SELECTOR):
        if SEEDING_COUNT_RE.search(header.get_text()):
            profile.seeding_count = parse_seeding_count(header.get_text())

    return profile


def parse_profile_html(html: str | bytes, owner: str, observed_at: datetime | None = None) -> ProfileData:
    """Parse raw profile HTML. Convenience wrapper around parse_profile."""
    return parse_profile(BeautifulSoup(html, "html.parser"), owner, observed_at)
