"""Maps subway lines to the MTA GTFS-Realtime feeds that carry them."""

import logging
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Feed carrying the numbered lines; also the fallback for unknown numeric codes
TRUNK_FEED = "1234567"

# MTA GTFS-Realtime feed URLs (subway only)
FEED_URLS: Dict[str, str] = {
    "ACE": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-ace",
    "BDFM": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-bdfm",
    "NQRW": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-nqrw",
    TRUNK_FEED: "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs",
    "JZ": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-jz",
    "G": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-g",
    "L": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-l",
    # Not routed to (SI uses the trunk feed); listed for feed_url lookups only
    "SIR": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-si",
}

LINE_TO_FEED: Dict[str, str] = {
    # Letter lines
    "A": "ACE",
    "C": "ACE",
    "E": "ACE",
    "B": "BDFM",
    "D": "BDFM",
    "F": "BDFM",
    "M": "BDFM",
    "N": "NQRW",
    "Q": "NQRW",
    "R": "NQRW",
    "W": "NQRW",
    "J": "JZ",
    "Z": "JZ",
    "G": "G",
    "L": "L",
    # Numbered lines
    "1": TRUNK_FEED,
    "2": TRUNK_FEED,
    "3": TRUNK_FEED,
    "4": TRUNK_FEED,
    "5": TRUNK_FEED,
    "6": TRUNK_FEED,
    "7": TRUNK_FEED,
    # Legacy numeric codes
    "101": TRUNK_FEED,
    "137": TRUNK_FEED,
    "165": TRUNK_FEED,
    "228": TRUNK_FEED,
    "251": TRUNK_FEED,
    "401": TRUNK_FEED,
    "726": TRUNK_FEED,
    "901": TRUNK_FEED,
    "902": TRUNK_FEED,
    # Staten Island Railway. Best effort: routed to the trunk feed rather than SIR.
    "SI": TRUNK_FEED,
}

# Display names for legacy numeric line codes
LINE_CODE_MAP: Dict[str, str] = {
    "101": "1",
    "137": "3",
    "165": "6",
    "228": "2",
    "251": "5",
    "401": "4",
    "726": "7",
    "901": "9",
    "902": "GS",  # Grand Central Shuttle
    "SI": "SI",
}


def feed_for(line: str) -> Optional[str]:
    """
    Get the feed ID that carries a line.

    Exact matches win. Otherwise all-digit codes are guessed from their first
    digit: 1-7 are the numbered lines and 9 is usually a shuttle, both of which
    live in the trunk feed. This guess is not verified against the schedule.

    Args:
        line: Line ID as requested (e.g., "A", "7", "228").

    Returns:
        Feed ID, or None if the line cannot be routed.
    """
    feed_id = LINE_TO_FEED.get(line)
    if feed_id:
        return feed_id

    if line.isdigit() and line.isascii():
        first_digit = line[0]
        if first_digit in "1234567":
            return TRUNK_FEED
        if first_digit == "9":
            return TRUNK_FEED

    logger.warning(f"Could not determine feed for line: {line}")
    return None


def feeds_for(lines: Iterable[str]) -> List[str]:
    """
    Get the distinct feeds needed to cover a set of lines.

    Unroutable lines are dropped. Order follows the first line that needs each feed.
    """
    feed_ids: List[str] = []
    for line in lines:
        feed_id = feed_for(line)
        if feed_id and feed_id not in feed_ids:
            feed_ids.append(feed_id)
    return feed_ids


def feed_url(feed_id: str) -> str:
    """Get the URL for a feed ID."""
    try:
        return FEED_URLS[feed_id]
    except KeyError:
        raise ValueError(f"Unknown feed: {feed_id}") from None


def display_line(line: str) -> str:
    """Normalize a legacy numeric line code to its rider-facing name."""
    return LINE_CODE_MAP.get(line, line)
