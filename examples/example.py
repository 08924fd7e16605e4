"""Example usage of SubwayTracker."""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path so we can import subwaytrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from subwaytrack import MTAClient, NoFeedsAvailable, Settings, StationReference, SubwayTracker
from subwaytrack.exceptions import SubwayTrackError

logger = logging.getLogger(__name__)


def print_arrivals(tracker: SubwayTracker, station_id: str, direction: str, lines):
    """
    Fetch and display upcoming arrivals for a station.

    Args:
        tracker: Configured tracker.
        station_id: GTFS station ID (e.g., "127").
        direction: "N" or "S".
        lines: Lines to include. Defaults to every line serving the station.
    """
    station = tracker.stations.get_station(station_id)
    lines = lines or list(station.lines)

    print(f"\n{'='*70}")
    print(f"Station: {station.name} ({station.borough})")
    print(f"Direction: {direction}    Lines: {', '.join(lines)}")
    if direction in station.terminal_directions:
        print("Note: this is the last stop in this direction")
    print(f"{'='*70}\n")

    try:
        arrivals = tracker.get_arrivals(station_id, direction, lines)
    except NoFeedsAvailable as e:
        print(f"Subway data is unavailable right now, try again shortly ({e})")
        return

    if not arrivals:
        print("  No arrivals found")
    for arrival in arrivals:
        flag = " (delayed)" if arrival.delayed else ""
        print(f"  {arrival.display_line:>3}: {arrival.minutes_away:2d} min → {arrival.destination}{flag}")

    running = tracker.get_available_lines(station_id, direction, lines)
    missing = [line for line in lines if line not in running]
    if missing:
        print(f"\nNo live predictions for: {', '.join(missing)}")


def print_itinerary(tracker: SubwayTracker, trip_id: str, line: str):
    """Display the remaining stops of a trip."""
    entries = tracker.get_destinations(trip_id, line)
    if not entries:
        print("No upcoming stops")
        return
    print(f"\nTrip {trip_id} to {entries[0].destination}:")
    for entry in entries:
        print(f"  {entry.minutes_away:3d} min  {entry.station_name}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Show real-time MTA subway arrivals.")
    parser.add_argument("station_id", help="GTFS station ID, e.g. 127")
    parser.add_argument("direction", choices=["N", "S"])
    parser.add_argument("lines", nargs="*", help="Lines to include (default: all at the station)")
    parser.add_argument("--trip", help="Also show the itinerary for this trip ID")
    parser.add_argument("--line", help="Line of the --trip trip")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        stations = StationReference.from_csv(settings.stations_csv)
        client = MTAClient(
            api_key=settings.api_key,
            timeout=settings.feed_timeout,
            cache_ttl=settings.cache_ttl,
        )
        tracker = SubwayTracker(stations, client=client)

        print_arrivals(tracker, args.station_id, args.direction, args.lines)
        if args.trip:
            print_itinerary(tracker, args.trip, args.line or (args.lines or ["A"])[0])
    except SubwayTrackError as e:
        logger.error(f"Failed to fetch data: {e}")
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
