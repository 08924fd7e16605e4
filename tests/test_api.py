"""Tests for the Flask HTTP API."""

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from feed_fixtures import NOW, sample_stations

from subwaytrack.api import create_app
from subwaytrack.exceptions import (
    DecodeError,
    FetchError,
    NoFeedsAvailable,
    TripNotFound,
    UnroutableLine,
)
from subwaytrack.models import Arrival
from subwaytrack.station_tracker import SubwayTracker


def make_arrival(trip_id="T1", line="A", minutes_away=5):
    return Arrival(
        id=f"{trip_id}-A32",
        line=line,
        time=datetime.fromtimestamp(NOW + minutes_away * 60, tz=timezone.utc),
        minutes_away=minutes_away,
        delayed=False,
        destination="Euclid Av",
        trip_id=trip_id,
        station_name="W 4 St-Wash Sq",
    )


class TestSubwayApi(unittest.TestCase):
    """Test the /api/subway endpoints."""

    def setUp(self):
        self.tracker = MagicMock(spec=SubwayTracker)
        self.tracker.stations = sample_stations()
        self.client = create_app(tracker=self.tracker).test_client()

    def test_arrivals(self):
        self.tracker.get_arrivals.return_value = [make_arrival(), make_arrival("T2", "228", 9)]

        response = self.client.get("/api/subway?stationId=A32&direction=S&lines=A,228")

        self.assertEqual(response.status_code, 200)
        self.tracker.get_arrivals.assert_called_once_with("A32", "S", ["A", "228"])
        arrivals = response.get_json()["arrivals"]
        self.assertEqual(arrivals[0]["id"], "T1-A32")
        self.assertEqual(arrivals[0]["minutesAway"], 5)
        self.assertEqual(arrivals[0]["tripId"], "T1")
        self.assertEqual(arrivals[0]["stationName"], "W 4 St-Wash Sq")
        self.assertEqual(arrivals[1]["line"], "228")
        self.assertEqual(arrivals[1]["displayLine"], "2")

    def test_missing_parameters(self):
        for query in ("", "?stationId=A32", "?stationId=A32&direction=S", "?stationId=A32&direction=S&lines="):
            response = self.client.get(f"/api/subway{query}")
            self.assertEqual(response.status_code, 400, query)

    def test_bad_direction(self):
        self.tracker.get_arrivals.side_effect = ValueError("Direction must be 'N' or 'S'")

        response = self.client.get("/api/subway?stationId=A32&direction=E&lines=A")

        self.assertEqual(response.status_code, 400)

    def test_no_feeds_available_is_retryable(self):
        self.tracker.get_arrivals.side_effect = NoFeedsAvailable(["ACE"])

        response = self.client.get("/api/subway?stationId=A32&direction=S&lines=A")

        self.assertEqual(response.status_code, 503)
        body = response.get_json()
        self.assertEqual(body["arrivals"], [])
        self.assertTrue(body["retry"])

    def test_destinations(self):
        self.tracker.get_destinations.return_value = [make_arrival(minutes_away=3), make_arrival(minutes_away=8)]

        response = self.client.get("/api/subway?tripId=T1&line=A")

        self.assertEqual(response.status_code, 200)
        self.tracker.get_destinations.assert_called_once_with("T1", "A")
        self.assertEqual([d["minutesAway"] for d in response.get_json()["destinations"]], [3, 8])

    def test_trip_lookup_wins_over_station_lookup(self):
        self.tracker.get_destinations.return_value = []

        self.client.get("/api/subway?tripId=T1&line=A&stationId=A32&direction=S&lines=A")

        self.tracker.get_arrivals.assert_not_called()

    def test_destination_errors(self):
        cases = [
            (TripNotFound("T1", "ACE"), 404),
            (UnroutableLine("X"), 400),
            (FetchError("ACE", "down", status=503), 502),
            (DecodeError("ACE", "bad"), 502),
        ]
        for error, status in cases:
            self.tracker.get_destinations.side_effect = error
            response = self.client.get("/api/subway?tripId=T1&line=A")
            self.assertEqual(response.status_code, status, error)
            self.assertEqual(response.get_json()["destinations"], [])

    def test_available_lines(self):
        self.tracker.get_available_lines.return_value = ["A"]

        response = self.client.get("/api/subway/available-lines?stationId=A32&direction=S&lines=A,C")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"availableLines": ["A"]})
        self.tracker.get_available_lines.assert_called_once_with("A32", "S", ["A", "C"])

    def test_available_lines_missing_parameters(self):
        response = self.client.get("/api/subway/available-lines?stationId=A32")
        self.assertEqual(response.status_code, 400)

    def test_available_lines_no_feeds(self):
        self.tracker.get_available_lines.side_effect = NoFeedsAvailable(["ACE"])

        response = self.client.get("/api/subway/available-lines?stationId=A32&direction=S&lines=A")

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()["availableLines"], [])

    def test_debug(self):
        self.tracker.check_feed.return_value = {"line": "A", "feedId": "ACE", "entityCount": 12}

        response = self.client.get("/api/subway/debug")

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body["success"])
        self.assertEqual(body["entityCount"], 12)

    def test_debug_failure(self):
        self.tracker.check_feed.side_effect = FetchError("ACE", "down", status=500)

        response = self.client.get("/api/subway/debug")

        self.assertEqual(response.status_code, 500)
        self.assertFalse(response.get_json()["success"])


class TestStationApi(unittest.TestCase):
    """Test the station reference endpoint."""

    def setUp(self):
        tracker = SubwayTracker(sample_stations(), client=MagicMock())
        self.client = create_app(tracker=tracker).test_client()

    def test_station(self):
        response = self.client.get("/api/stations/142")

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["name"], "South Ferry")
        self.assertTrue(body["isTerminal"])
        self.assertEqual(body["terminalDirections"], ["S"])
        self.assertEqual(body["lines"], ["1"])

    def test_unknown_station(self):
        response = self.client.get("/api/stations/Z99")
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
