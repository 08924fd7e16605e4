"""JSON HTTP API for arrivals, available lines and trip itineraries."""

import logging
from typing import List, Optional

from flask import Flask, jsonify, request

from .config import Settings
from .exceptions import (
    DecodeError,
    FetchError,
    NoFeedsAvailable,
    StationNotFound,
    TripNotFound,
    UnroutableLine,
)
from .mta_client import MTAClient
from .station_reference import StationReference
from .station_tracker import SubwayTracker

logger = logging.getLogger(__name__)


def _split_lines(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [line.strip() for line in raw.split(",") if line.strip()]


def _missing_parameters():
    return jsonify({"error": "Missing required parameters"}), 400


def _feeds_unavailable(key: str, error: NoFeedsAvailable):
    logger.error(f"Feeds unavailable: {error}")
    return jsonify({key: [], "error": "Subway data is temporarily unavailable", "retry": True}), 503


def build_tracker(settings: Settings) -> SubwayTracker:
    """Create a tracker wired to the live MTA feeds and station list."""
    stations = StationReference.from_csv(settings.stations_csv)
    client = MTAClient(
        api_key=settings.api_key,
        timeout=settings.feed_timeout,
        cache_ttl=settings.cache_ttl,
    )
    return SubwayTracker(stations, client=client)


def create_app(tracker: Optional[SubwayTracker] = None, settings: Optional[Settings] = None) -> Flask:
    """
    Create the Flask application.

    Args:
        tracker: Tracker to serve. Built from settings if omitted.
        settings: Runtime settings. Read from the environment if omitted.
    """
    if tracker is None:
        settings = settings or Settings.from_env()
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        tracker = build_tracker(settings)

    app = Flask(__name__)
    app.config["TRACKER"] = tracker

    @app.get("/api/subway")
    def subway():
        station_id = request.args.get("stationId")
        direction = request.args.get("direction")
        lines = _split_lines(request.args.get("lines"))
        trip_id = request.args.get("tripId")
        line = request.args.get("line")

        if trip_id and line:
            try:
                destinations = tracker.get_destinations(trip_id, line)
            except UnroutableLine as e:
                return jsonify({"destinations": [], "error": str(e)}), 400
            except TripNotFound as e:
                logger.info(str(e))
                return jsonify({"destinations": [], "error": "Trip not found"}), 404
            except (FetchError, DecodeError) as e:
                logger.error(f"Failed to fetch destinations: {e}")
                return jsonify({"destinations": [], "error": "Failed to fetch subway data", "retry": True}), 502
            return jsonify({"destinations": [entry.to_dict() for entry in destinations]})

        if not (station_id and direction and lines):
            return _missing_parameters()

        try:
            arrivals = tracker.get_arrivals(station_id, direction, lines)
        except ValueError as e:
            return jsonify({"arrivals": [], "error": str(e)}), 400
        except NoFeedsAvailable as e:
            return _feeds_unavailable("arrivals", e)
        return jsonify({"arrivals": [arrival.to_dict() for arrival in arrivals]})

    @app.get("/api/subway/available-lines")
    def available_lines():
        station_id = request.args.get("stationId")
        direction = request.args.get("direction")
        lines = _split_lines(request.args.get("lines"))

        if not (station_id and direction and lines):
            return _missing_parameters()

        try:
            available = tracker.get_available_lines(station_id, direction, lines)
        except ValueError as e:
            return jsonify({"availableLines": [], "error": str(e)}), 400
        except NoFeedsAvailable as e:
            return _feeds_unavailable("availableLines", e)
        return jsonify({"availableLines": available})

    @app.get("/api/subway/debug")
    def debug():
        try:
            return jsonify({"success": True, **tracker.check_feed("A")})
        except (FetchError, DecodeError) as e:
            logger.error(f"DEBUG feed check failed: {e}")
            return jsonify({"success": False, "error": "Failed to fetch subway data", "message": str(e)}), 500

    @app.get("/api/stations/<stop_id>")
    def station(stop_id: str):
        try:
            found = tracker.stations.get_station(stop_id)
        except StationNotFound as e:
            return jsonify({"error": str(e)}), 404
        return jsonify({
            "id": found.stop_id,
            "name": found.name,
            "borough": found.borough,
            "lines": list(found.lines),
            "latitude": found.latitude,
            "longitude": found.longitude,
            "isTerminal": found.is_terminal,
            "terminalDirections": found.terminal_directions,
        })

    return app
