"""Exceptions raised by the subway arrivals tracker."""

from typing import Dict, Iterable, Optional


class SubwayTrackError(Exception):
    """Base class for all tracker errors."""


class ConfigError(SubwayTrackError, ValueError):
    """Raised when a setting has an invalid value."""


class UnroutableLine(SubwayTrackError):
    """Raised when a line matches no known feed."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"No feed found for line: {line}")


class FetchError(SubwayTrackError):
    """Raised when a feed cannot be retrieved (network error or non-2xx status)."""

    def __init__(self, feed_id: str, message: str, status: Optional[int] = None):
        self.feed_id = feed_id
        self.status = status
        if status is not None:
            message = f"{message} (HTTP {status})"
        super().__init__(f"Failed to fetch feed {feed_id}: {message}")


class DecodeError(SubwayTrackError):
    """Raised when a feed payload is not a valid GTFS-Realtime message."""

    def __init__(self, feed_id: str, message: str):
        self.feed_id = feed_id
        super().__init__(f"Failed to decode feed {feed_id}: {message}")


class NoFeedsAvailable(SubwayTrackError):
    """Raised when no requested feed could be routed, fetched or decoded."""

    def __init__(self, feed_ids: Iterable[str], errors: Optional[Dict[str, Exception]] = None):
        self.feed_ids = list(feed_ids)
        self.errors = dict(errors or {})
        if self.feed_ids:
            message = f"All feeds failed: {', '.join(self.feed_ids)}"
        else:
            message = "No feeds could be routed for the requested lines"
        super().__init__(message)


class TripNotFound(SubwayTrackError):
    """Raised when a trip ID is absent from its line's feed."""

    def __init__(self, trip_id: str, feed_id: str):
        self.trip_id = trip_id
        self.feed_id = feed_id
        super().__init__(f"Trip {trip_id} not found in feed {feed_id}")


class StationNotFound(SubwayTrackError, KeyError):
    """Raised when a station ID is not in the station reference table."""

    def __init__(self, stop_id: str):
        self.stop_id = stop_id
        super().__init__(f"Station {stop_id} not found")

    def __str__(self) -> str:
        return self.args[0]
