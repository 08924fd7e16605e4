"""Turns decoded GTFS-Realtime feeds into rider-facing arrivals."""

import logging
import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .models import Arrival, DestinationEntry, FeedMessage, StopTimeUpdate, TripUpdate
from .station_reference import StationReference

logger = logging.getLogger(__name__)

DIRECTIONS = ("N", "S")

# Arrivals further out than this are not shown on a station board
MAX_MINUTES_AWAY = 60

# A stop-time update with more delay than this is flagged as delayed
DELAY_THRESHOLD_SECONDS = 300


def minutes_until(arrival_time: int, now: float) -> int:
    """Whole minutes between now and an arrival, floored."""
    return math.floor((arrival_time - now) / 60)


def is_delayed(update: StopTimeUpdate) -> bool:
    return update.delay is not None and update.delay > DELAY_THRESHOLD_SECONDS


def last_predicted_stop(trip: TripUpdate) -> Optional[StopTimeUpdate]:
    """
    Get the trip's effective terminus: the last stop-time update with an arrival prediction.

    Trailing updates without a prediction are ignored. Updates are taken in
    feed order, not sorted by time.
    """
    last = None
    for update in trip.stop_time_updates:
        if update.has_prediction:
            last = update
    return last


def resolve_destination(trip: TripUpdate, stations: StationReference) -> str:
    """
    Name the trip's destination.

    Uses the station name of the last predicted stop, then the trip headsign,
    then "Unknown".
    """
    terminus = last_predicted_stop(trip)
    if terminus is not None:
        name = stations.name_for(terminus.station_id)
        if name:
            return name
    return trip.headsign or "Unknown"


def _arrival_time(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def extract_arrivals(
    feeds: Iterable[FeedMessage],
    station_id: str,
    direction: str,
    lines: Iterable[str],
    stations: StationReference,
    now: float,
) -> List[Arrival]:
    """
    Find upcoming arrivals at one platform.

    Args:
        feeds: Decoded feeds to search.
        station_id: GTFS station ID without direction (e.g., "127").
        direction: "N" or "S".
        lines: Route IDs to include, matched exactly against the feed.
        stations: Station reference used to name stations and destinations.
        now: Current Unix time.

    Returns:
        Arrivals due within the next hour, sorted by minutes away. Ties keep
        feed order.
    """
    lines = set(lines)
    stop_id = f"{station_id}{direction}"
    station_name = stations.display_name(station_id)
    arrivals: List[Arrival] = []

    for feed in feeds:
        if not feed.trip_updates:
            logger.debug(f"Feed {feed.feed_id} has no trip updates")
            continue

        match_count = 0
        for trip in feed.trip_updates:
            if trip.route_id not in lines:
                continue

            update = next((u for u in trip.stop_time_updates if u.stop_id == stop_id), None)
            if update is None:
                continue

            match_count += 1
            if not update.has_prediction:
                logger.debug(f"Stop matched but no arrival time found for line {trip.route_id}")
                continue

            minutes_away = minutes_until(update.arrival_time, now)
            if not 0 < minutes_away <= MAX_MINUTES_AWAY:
                continue

            arrivals.append(
                Arrival(
                    id=f"{trip.trip_id}-{station_id}",
                    line=trip.route_id,
                    time=_arrival_time(update.arrival_time),
                    minutes_away=minutes_away,
                    delayed=is_delayed(update),
                    destination=resolve_destination(trip, stations),
                    trip_id=trip.trip_id,
                    station_name=station_name,
                )
            )

        logger.debug(f"Found {match_count} matching stops for {stop_id} in feed {feed.feed_id}")

    # list.sort is stable, so equal minutes keep feed order
    arrivals.sort(key=lambda a: a.minutes_away)
    return arrivals


def find_trip(feed: FeedMessage, trip_id: str) -> Optional[TripUpdate]:
    return next((trip for trip in feed.trip_updates if trip.trip_id == trip_id), None)


def build_itinerary(
    trip: TripUpdate,
    line: str,
    stations: StationReference,
    now: float,
) -> List[DestinationEntry]:
    """
    List every remaining stop of a trip.

    All entries share the trip's destination. Only stops predicted strictly in
    the future are kept; there is no upper bound.
    """
    destination = resolve_destination(trip, stations)
    entries: List[DestinationEntry] = []

    for update in trip.stop_time_updates:
        if not update.has_prediction:
            continue

        minutes_away = minutes_until(update.arrival_time, now)
        if minutes_away <= 0:
            continue

        station_id = update.station_id
        entries.append(
            DestinationEntry(
                id=f"{trip.trip_id}-{station_id}",
                line=line,
                time=_arrival_time(update.arrival_time),
                minutes_away=minutes_away,
                delayed=is_delayed(update),
                destination=destination,
                trip_id=trip.trip_id,
                station_name=stations.display_name(station_id),
            )
        )

    entries.sort(key=lambda e: e.minutes_away)
    return entries
