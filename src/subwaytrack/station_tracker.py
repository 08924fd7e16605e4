"""Main subway arrivals tracker."""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from .exceptions import TripNotFound, UnroutableLine
from .extractor import DIRECTIONS, build_itinerary, extract_arrivals, find_trip
from .feed_router import feed_for, feed_url, feeds_for
from .models import Arrival, DestinationEntry
from .mta_client import MTAClient
from .station_reference import StationReference

logger = logging.getLogger(__name__)


def _validate_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"Direction must be 'N' or 'S', got {direction!r}")


class SubwayTracker:
    """
    Looks up real-time subway arrivals for a station and itineraries for a trip.

    This class provides methods to:
    - Get upcoming arrivals at a station in one direction
    - Get the lines currently running at a station
    - Get the remaining stops of a single trip
    """

    def __init__(
        self,
        stations: StationReference,
        client: Optional[MTAClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the tracker.

        Args:
            stations: Station reference used for station and destination names.
            client: Feed client. A default MTAClient is created if omitted.
            clock: Returns the current Unix time.
        """
        self.stations = stations
        self.mta_client = client or MTAClient()
        self._clock = clock

    def get_arrivals(self, station_id: str, direction: str, lines: Iterable[str]) -> List[Arrival]:
        """
        Get upcoming arrivals at a station in one direction.

        Args:
            station_id: GTFS station ID (e.g., "127").
            direction: "N" or "S".
            lines: Route IDs to include (e.g., ["1", "2", "3"]).

        Returns:
            Arrivals due in the next hour, soonest first.

        Raises:
            NoFeedsAvailable: If no line could be routed or every feed failed.
        """
        _validate_direction(direction)
        lines = list(dict.fromkeys(lines))
        logger.info(f"Getting arrivals for station {station_id}{direction}, lines: {lines}")

        feeds = self.mta_client.fetch_feeds(feeds_for(lines))
        arrivals = extract_arrivals(
            feeds.values(),
            station_id,
            direction,
            lines,
            self.stations,
            now=self._clock(),
        )
        logger.info(f"Found {len(arrivals)} arrivals for station {station_id}{direction}")
        return arrivals

    def get_available_lines(self, station_id: str, direction: str, lines: Iterable[str]) -> List[str]:
        """
        Get the lines that currently have an arrival at a station.

        Args:
            station_id: GTFS station ID.
            direction: "N" or "S".
            lines: Lines nominally serving the station.

        Returns:
            Distinct lines, in order of their first arrival.
        """
        arrivals = self.get_arrivals(station_id, direction, lines)
        return list(dict.fromkeys(arrival.line for arrival in arrivals))

    def get_destinations(self, trip_id: str, line: str) -> List[DestinationEntry]:
        """
        Get the remaining stops of one trip.

        Args:
            trip_id: GTFS-Realtime trip ID.
            line: Line the trip runs on; selects the feed to search.

        Returns:
            One entry per upcoming stop, soonest first.

        Raises:
            UnroutableLine: If the line matches no feed.
            FetchError: If the feed cannot be retrieved.
            DecodeError: If the feed payload is malformed.
            TripNotFound: If the feed has no trip with this ID.
        """
        feed_id = feed_for(line)
        if feed_id is None:
            raise UnroutableLine(line)

        feed = self.mta_client.fetch(feed_id)
        trip = find_trip(feed, trip_id)
        if trip is None:
            raise TripNotFound(trip_id, feed_id)

        return build_itinerary(trip, line, self.stations, now=self._clock())

    def check_feed(self, line: str = "A") -> dict:
        """
        Fetch one line's feed and report basic stats about it.

        Raises the same errors as get_destinations.
        """
        feed_id = feed_for(line)
        if feed_id is None:
            raise UnroutableLine(line)

        feed = self.mta_client.fetch(feed_id)
        return {
            "line": line,
            "feedId": feed_id,
            "url": feed_url(feed_id),
            "entityCount": len(feed.trip_updates),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def cleanup(self) -> None:
        """Release resources and clear caches."""
        self.mta_client.clear_cache()
        logger.info("Cleaned up tracker resources")
