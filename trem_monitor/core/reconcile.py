"""Reconciliation of realtime readings into the area store.

Joins the upstream realtime payload with the station directory, keeps
only stations assigned to a monitored area and writes changed values
into the AreaStore. The upstream dataset covers every station in the
network; nearly all of it is discarded by the monitored-area filter.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from trem_monitor.core.area import AreaStatus, AreaStore
from trem_monitor.core.station import StationDirectory


@dataclass(frozen=True)
class RawReading:
    """One station's reading from a single realtime payload.

    Attributes:
        station_id: Upstream station identifier
        pga: Peak ground acceleration in gal
        intensity_float: Intensity as computed by upstream
        intensity_int: Integer intensity level as computed by upstream
    """
    station_id: str
    pga: float
    intensity_float: float
    intensity_int: int


@dataclass(frozen=True)
class ChangedArea:
    """An area whose stored status changed during reconciliation.

    Attributes:
        status: The new stored status
        intensity_float: Upstream floating point intensity
        station_id: Station that produced the reading
        latitude: Station latitude
        longitude: Station longitude
    """
    status: AreaStatus
    intensity_float: float
    station_id: str
    latitude: float
    longitude: float

    @property
    def code(self) -> int:
        return self.status.code


def parse_reading(station_id: str, data: Any) -> RawReading | None:
    """Parse one entry of the realtime ``station`` map.

    Pure function. A missing ``pga`` counts as zero; missing or
    non-numeric intensity values make the entry unusable.

    Args:
        station_id: Upstream station identifier
        data: Raw reading dict (``pga``, ``i``, ``I`` keys)

    Returns:
        RawReading or None if the entry is malformed
    """
    if not isinstance(data, dict):
        return None

    try:
        pga = float(data.get("pga") or 0)
        intensity_float = float(data["i"])
        intensity_int = int(data["I"])
    except (KeyError, TypeError, ValueError, OverflowError):
        # OverflowError: JSON allows 1e999, which decodes to inf
        return None

    if not (math.isfinite(pga) and math.isfinite(intensity_float)):
        return None

    return RawReading(
        station_id=str(station_id),
        pga=pga,
        intensity_float=intensity_float,
        intensity_int=intensity_int,
    )


def format_upstream_text(intensity_float: float) -> str:
    """Render upstream's own intensity value for display.

    The text is taken from upstream rather than recomputed from PGA so
    the display stays consistent with what upstream shows. All digits
    are kept; whole numbers drop the trailing ``.0``.
    """
    if intensity_float.is_integer():
        return str(int(intensity_float))
    return repr(intensity_float)


def reconcile(
    payload: dict[str, Any] | None,
    station_info: StationDirectory | None,
    store: AreaStore,
    now: datetime | None = None,
) -> list[ChangedArea]:
    """Apply one realtime payload to the area store.

    An area counts as changed when its PGA or integer intensity differ
    from the stored values, or when it has never been updated. Only
    changed areas get a new ``last_update``, so the timestamp records
    the last actual change, not the last time data arrived.

    Malformed entries, unknown stations and stations outside the
    monitored areas are skipped.

    Args:
        payload: Raw realtime JSON (expects a ``station`` mapping)
        station_info: Station directory, or None when unavailable
        store: Area store to update in place
        now: Timestamp for changed entries (defaults to current UTC time)

    Returns:
        Changed areas in payload order (possibly empty)
    """
    if not isinstance(payload, dict):
        return []

    readings = payload.get("station")
    if not isinstance(readings, dict):
        return []

    if station_info is None:
        return []

    if now is None:
        now = datetime.now(timezone.utc)

    changed: list[ChangedArea] = []

    for station_id, data in readings.items():
        station = station_info.get(str(station_id))
        if station is None:
            continue

        assignment = station.current_assignment()
        if assignment is None:
            continue

        if assignment.code not in store:
            continue

        reading = parse_reading(station_id, data)
        if reading is None:
            continue

        stored = store.get(assignment.code)
        differs = (
            stored.pga != reading.pga
            or stored.intensity != reading.intensity_int
        )
        if not differs and stored.last_update is not None:
            continue

        updated = stored.with_reading(
            pga=reading.pga,
            intensity=reading.intensity_int,
            intensity_text=format_upstream_text(reading.intensity_float),
            last_update=now,
        )
        store.update(updated)

        changed.append(ChangedArea(
            status=updated,
            intensity_float=reading.intensity_float,
            station_id=reading.station_id,
            latitude=assignment.latitude,
            longitude=assignment.longitude,
        ))

    return changed
