"""SubwayTrack - Real-time MTA subway arrivals and trip itineraries."""

__version__ = "0.2.0"

from .exceptions import (
    SubwayTrackError,
    ConfigError,
    UnroutableLine,
    FetchError,
    DecodeError,
    NoFeedsAvailable,
    TripNotFound,
    StationNotFound,
)
from .models import Station, Arrival, DestinationEntry, FeedMessage, TripUpdate, StopTimeUpdate
from .station_reference import StationReference
from .station_tracker import SubwayTracker
from .mta_client import MTAClient
from .config import Settings

__all__ = [
    "SubwayTracker",
    "StationReference",
    "MTAClient",
    "Settings",
    "Station",
    "Arrival",
    "DestinationEntry",
    "FeedMessage",
    "TripUpdate",
    "StopTimeUpdate",
    "SubwayTrackError",
    "ConfigError",
    "UnroutableLine",
    "FetchError",
    "DecodeError",
    "NoFeedsAvailable",
    "TripNotFound",
    "StationNotFound",
]
