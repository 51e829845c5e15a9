"""Station metadata models and parsing - Pure functions.

The upstream station directory maps a station id to its history of
area assignments. A station can be moved between areas over time;
the last history entry is the assignment currently in force.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StationInfo:
    """One entry in a station's assignment history.

    Attributes:
        code: Area code the station belongs to
        latitude: Station latitude
        longitude: Station longitude
    """
    code: int
    latitude: float
    longitude: float


@dataclass(frozen=True)
class StationRecord:
    """A station and its ordered assignment history (oldest first)."""
    station_id: str
    info: tuple[StationInfo, ...] = ()

    def current_assignment(self) -> StationInfo | None:
        """Return the assignment currently in force.

        An empty history means the station has no assignment; that is
        not an error.
        """
        if not self.info:
            return None
        return self.info[-1]


StationDirectory = dict[str, StationRecord]


def parse_station_info(entry: dict[str, Any]) -> StationInfo | None:
    """Parse a single history entry, or None if it is malformed."""
    try:
        return StationInfo(
            code=int(entry["code"]),
            latitude=float(entry["lat"]),
            longitude=float(entry["lon"]),
        )
    except (KeyError, TypeError, ValueError, OverflowError):
        return None


def parse_station_record(station_id: str, data: Any) -> StationRecord | None:
    """Parse one station from the upstream directory.

    Pure function. Malformed history entries are dropped individually
    so a single bad entry does not hide the rest of the history.

    Args:
        station_id: Upstream station identifier
        data: Raw station dict (expects an ``info`` list)

    Returns:
        StationRecord, or None if the record itself is unusable
    """
    if not isinstance(data, dict):
        return None

    history = data.get("info")
    if not isinstance(history, list):
        return StationRecord(station_id=str(station_id))

    parsed = [
        parse_station_info(entry) if isinstance(entry, dict) else None
        for entry in history
    ]

    # A malformed latest entry leaves the station without a known assignment
    if parsed and parsed[-1] is None:
        return StationRecord(station_id=str(station_id))

    parsed = [info for info in parsed if info is not None]

    return StationRecord(station_id=str(station_id), info=tuple(parsed))


def parse_station_directory(payload: dict[str, Any]) -> StationDirectory:
    """Parse the full upstream station directory.

    Pure function.

    Args:
        payload: JSON object keyed by station id

    Returns:
        Mapping of station id to StationRecord, skipping unusable records
    """
    directory: StationDirectory = {}

    for station_id, data in payload.items():
        record = parse_station_record(station_id, data)
        if record is not None:
            directory[record.station_id] = record

    return directory
