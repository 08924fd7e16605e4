"""Data models for the subway arrivals tracker."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .feed_router import display_line


@dataclass(frozen=True)
class Station:
    """Represents an MTA subway station from the station reference table."""
    stop_id: str
    name: str
    borough: str
    lines: Tuple[str, ...]  # Daytime route IDs served at this station
    latitude: float
    longitude: float
    north_label: str = ""
    south_label: str = ""

    @property
    def terminal_directions(self) -> List[str]:
        """Directions ("N"/"S") with no onward service from this station."""
        directions = []
        if not self.north_label:
            directions.append("N")
        if not self.south_label:
            directions.append("S")
        return directions

    @property
    def is_terminal(self) -> bool:
        return bool(self.terminal_directions)


@dataclass(frozen=True)
class StopTimeUpdate:
    """One predicted stop on a trip."""
    stop_id: str  # Includes the direction suffix, e.g. "127N"
    arrival_time: Optional[int] = None  # Unix timestamp, None when not predicted
    delay: Optional[int] = None  # Seconds

    @property
    def has_prediction(self) -> bool:
        return bool(self.arrival_time)

    @property
    def station_id(self) -> str:
        """Stop ID with its trailing direction character removed."""
        return self.stop_id[:-1]


@dataclass(frozen=True)
class TripUpdate:
    """A single vehicle run and its ordered stop predictions."""
    trip_id: str
    route_id: str
    headsign: str = ""
    stop_time_updates: Tuple[StopTimeUpdate, ...] = ()


@dataclass(frozen=True)
class FeedMessage:
    """Decoded snapshot of one GTFS-Realtime feed."""
    feed_id: str
    timestamp: int = 0
    trip_updates: Tuple[TripUpdate, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Arrival:
    """Represents a real-time train arrival at a station."""
    id: str
    line: str
    time: datetime
    minutes_away: int
    delayed: bool
    destination: str
    trip_id: str
    station_name: Optional[str] = None

    @property
    def display_line(self) -> str:
        return display_line(self.line)

    def to_dict(self) -> dict:
        """Serialize to the JSON shape used by the HTTP API."""
        return {
            "id": self.id,
            "line": self.line,
            "displayLine": self.display_line,
            "time": self.time.astimezone(timezone.utc).isoformat(),
            "minutesAway": self.minutes_away,
            "delayed": self.delayed,
            "destination": self.destination,
            "tripId": self.trip_id,
            "stationName": self.station_name,
        }


# One row of a trip's remaining itinerary; same shape as an arrival.
DestinationEntry = Arrival
