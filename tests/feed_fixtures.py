"""Builders for GTFS-Realtime payloads and station tables used in tests."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add src to path so we can import subwaytrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from google.transit import gtfs_realtime_pb2

from subwaytrack.models import Station
from subwaytrack.station_reference import StationReference

NOW = 1_700_000_000


def build_feed(trips, timestamp=NOW) -> bytes:
    """
    Serialize a FeedMessage.

    Args:
        trips: Iterable of (trip_id, route_id, stops), where stops is a list of
            (stop_id, arrival_time or None, delay or None).
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"
    feed.header.timestamp = timestamp

    for index, (trip_id, route_id, stops) in enumerate(trips):
        entity = feed.entity.add()
        entity.id = str(index + 1)
        trip_update = entity.trip_update
        trip_update.trip.trip_id = trip_id
        trip_update.trip.route_id = route_id
        for stop_id, arrival_time, delay in stops:
            stop_time = trip_update.stop_time_update.add()
            stop_time.stop_id = stop_id
            if arrival_time is not None:
                stop_time.arrival.time = arrival_time
            if delay is not None:
                stop_time.arrival.delay = delay

    return feed.SerializeToString()


def mock_response(content=b"", status_code=200, reason="OK"):
    response = MagicMock()
    response.content = content
    response.status_code = status_code
    response.reason = reason
    response.ok = 200 <= status_code < 300
    return response


def make_station(stop_id, name, lines=(), borough="Manhattan", north_label="Uptown", south_label="Downtown"):
    return Station(
        stop_id=stop_id,
        name=name,
        borough=borough,
        lines=tuple(lines),
        latitude=40.75,
        longitude=-73.98,
        north_label=north_label,
        south_label=south_label,
    )


def sample_stations() -> StationReference:
    return StationReference([
        make_station("127", "Times Sq-42 St", ["1", "2", "3"]),
        make_station("101", "Van Cortlandt Park-242 St", ["1"], borough="Bronx", north_label=""),
        make_station("142", "South Ferry", ["1"], south_label=""),
        make_station("A32", "W 4 St-Wash Sq", ["A", "C", "E"]),
        make_station("A27", "42 St-Port Authority Bus Terminal", ["A", "C", "E"]),
        make_station("A55", "Euclid Av", ["A", "C"], borough="Brooklyn"),
        make_station("H11", "Far Rockaway-Mott Av", ["A"], borough="Queens", south_label=""),
    ])
