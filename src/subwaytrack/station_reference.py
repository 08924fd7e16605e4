"""Read-only station reference table built from the MTA stations list."""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .exceptions import StationNotFound
from .models import Station

logger = logging.getLogger(__name__)

# MTA open data station list (one row per GTFS stop)
MTA_STATIONS_URL = "https://data.ny.gov/api/views/39hk-dx4f/rows.csv?accessType=DOWNLOAD"

BOROUGHS = {
    "M": "Manhattan",
    "Bk": "Brooklyn",
    "Bx": "Bronx",
    "Q": "Queens",
    "SI": "Staten Island",
}

STATION_COLUMNS = [
    "GTFS Stop ID",
    "Stop Name",
    "Borough",
    "Daytime Routes",
    "GTFS Latitude",
    "GTFS Longitude",
    "North Direction Label",
    "South Direction Label",
]


def _text(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _float(value) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if pd.isna(result) else result


def station_from_row(row: Mapping) -> Optional[Station]:
    """
    Build a Station from one row of the MTA stations list.

    Returns None for rows without a stop ID or name.
    """
    stop_id = _text(row.get("GTFS Stop ID"))
    name = _text(row.get("Stop Name"))
    if not stop_id or not name:
        return None

    borough = _text(row.get("Borough"))
    routes = _text(row.get("Daytime Routes"))
    return Station(
        stop_id=stop_id,
        name=name,
        borough=BOROUGHS.get(borough, borough),
        lines=tuple(routes.split()),
        latitude=_float(row.get("GTFS Latitude")),
        longitude=_float(row.get("GTFS Longitude")),
        north_label=_text(row.get("North Direction Label")),
        south_label=_text(row.get("South Direction Label")),
    )


class StationReference:
    """
    Immutable lookup table of subway stations keyed by GTFS stop ID.

    Built once at startup and shared by every component that needs station
    names; it has no write path, so concurrent reads need no locking.
    """

    def __init__(self, stations: Iterable[Station]):
        by_id: Dict[str, Station] = {}
        for station in stations:
            if station.stop_id in by_id:
                logger.debug(f"Duplicate station {station.stop_id}, keeping first entry")
                continue
            by_id[station.stop_id] = station
        self._stations = MappingProxyType(by_id)
        logger.info(f"Loaded {len(by_id)} stations")

    @classmethod
    def from_stations(cls, stations: Iterable[Station]) -> "StationReference":
        """Build the table from Station objects that are already parsed."""
        return cls(stations)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping]) -> "StationReference":
        """Build the table from mappings keyed by the MTA stations list columns."""
        stations = []
        for index, row in enumerate(rows):
            station = station_from_row(row)
            if station is None:
                logger.warning(f"Skipping station with missing ID or name at index {index}")
                continue
            stations.append(station)
        return cls.from_stations(stations)

    @classmethod
    def from_csv(cls, path_or_url: str = MTA_STATIONS_URL) -> "StationReference":
        """
        Load the table from the MTA stations CSV.

        Args:
            path_or_url: Local path or URL of the CSV.
        """
        logger.info(f"Loading stations from {path_or_url}")
        frame = pd.read_csv(path_or_url, dtype=str, usecols=lambda column: column in STATION_COLUMNS)
        return cls.from_rows(frame.to_dict(orient="records"))

    def __len__(self) -> int:
        return len(self._stations)

    def __contains__(self, stop_id: object) -> bool:
        return stop_id in self._stations

    def get(self, stop_id: str) -> Optional[Station]:
        return self._stations.get(stop_id)

    def get_station(self, stop_id: str) -> Station:
        """Get station by stop_id, raising StationNotFound if unknown."""
        station = self._stations.get(stop_id)
        if station is None:
            raise StationNotFound(stop_id)
        return station

    def name_for(self, stop_id: str) -> Optional[str]:
        """Get a station's name, or None if the stop ID is unknown."""
        station = self._stations.get(stop_id)
        if station is None:
            logger.debug(f"No station name found for ID: {stop_id}")
            return None
        return station.name

    def display_name(self, stop_id: str) -> str:
        """Get a station's name, with a generic label for unknown stop IDs."""
        return self.name_for(stop_id) or f"Station {stop_id}"

    def find_stations_by_name(self, name: str) -> List[Station]:
        """Find stations by name (partial, case-insensitive match)."""
        name_lower = name.lower()
        return [station for station in self._stations.values() if name_lower in station.name.lower()]

    def stations_for_line(self, line: str) -> List[Station]:
        """Get all stations whose daytime routes include a line."""
        return [station for station in self._stations.values() if line in station.lines]

    def all_stations(self) -> List[Station]:
        """
        List stations for a picker: one entry per name and borough.

        Stations sharing a name within a borough (separate platforms of a
        complex) are merged, keeping the first stop ID and the union of their
        lines. Sorted by borough, then name.
        """
        merged: Dict[tuple, Station] = {}
        merged_lines: Dict[tuple, List[str]] = {}
        for station in self._stations.values():
            key = (station.name, station.borough)
            if key not in merged:
                merged[key] = station
                merged_lines[key] = list(station.lines)
                continue
            for line in station.lines:
                if line not in merged_lines[key]:
                    merged_lines[key].append(line)

        stations = [
            Station(
                stop_id=station.stop_id,
                name=station.name,
                borough=station.borough,
                lines=tuple(merged_lines[key]),
                latitude=station.latitude,
                longitude=station.longitude,
                north_label=station.north_label,
                south_label=station.south_label,
            )
            for key, station in merged.items()
        ]
        stations.sort(key=lambda s: (s.borough, s.name))
        return stations
