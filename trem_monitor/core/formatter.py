"""Message formatting - Pure functions.

This module turns area state into the subscriber wire message and
into human-readable log lines. All functions are pure with no side
effects.
"""

from typing import Any, Iterable

from trem_monitor.core.area import AreaStatus
from trem_monitor.core.reconcile import ChangedArea


STATUS_MESSAGE_TYPE = "status"


def status_to_dict(status: AreaStatus) -> dict[str, Any]:
    """Convert an AreaStatus to its wire representation.

    Pure function.
    """
    return {
        "code": status.code,
        "name": status.name,
        "pga": status.pga,
        "intensity": status.intensity,
        "intensityText": status.intensity_text,
        "lastUpdate": status.last_update.isoformat() if status.last_update else None,
    }


def format_status_message(snapshot: Iterable[AreaStatus]) -> dict[str, Any]:
    """Format a full snapshot as the message pushed to subscribers.

    Pure function. Every monitored area is included, keyed by its area
    code as a string (JSON object keys are strings).

    Args:
        snapshot: All area statuses, in configuration order

    Returns:
        ``{"type": "status", "data": {"<code>": {...}, ...}}``
    """
    return {
        "type": STATUS_MESSAGE_TYPE,
        "data": {str(status.code): status_to_dict(status) for status in snapshot},
    }


def format_change_line(changed: ChangedArea) -> str:
    """Format a one-line description of an area change.

    Pure function.
    """
    status = changed.status
    time_str = status.last_update.strftime("%H:%M:%S") if status.last_update else "--:--:--"
    return (
        f"{time_str} - {status.name} intensity updated to {status.intensity_text} "
        f"({status.pga:.2f} gal, station {changed.station_id})"
    )


def format_status_summary(snapshot: Iterable[AreaStatus]) -> str:
    """Format a multi-line summary of all monitored areas.

    Pure function.

    Args:
        snapshot: All area statuses

    Returns:
        One line per area with intensity, PGA and last change time
    """
    lines = ["Area intensity status:"]
    for status in snapshot:
        if status.last_update:
            updated = status.last_update.strftime("%H:%M:%S")
        else:
            updated = "no data yet"
        lines.append(
            f"  {status.name} ({status.code}): intensity {status.intensity_text} "
            f"({status.pga:.2f} gal) [{updated}]"
        )
    return "\n".join(lines)


def should_log_change(changed: ChangedArea, threshold: int = 0) -> bool:
    """Return True if a change is worth a log line.

    Pure function. Changes at or below the threshold intensity are
    still stored and broadcast, just not logged.
    """
    return changed.status.intensity > threshold
