"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Intensity conversions
- Station metadata parsing
- Area state and reconciliation
- Poll rate limiting
- Message formatting

All functions here are deterministic and have no I/O.
"""

from trem_monitor.core.area import AreaStatus, AreaStore, MonitoredArea
from trem_monitor.core.intensity import (
    intensity_float_to_int,
    intensity_to_text,
    pga_to_intensity,
    pga_to_intensity_float,
)
from trem_monitor.core.station import StationRecord, parse_station_directory
from trem_monitor.core.reconcile import ChangedArea, reconcile
from trem_monitor.core.formatter import format_status_message

__all__ = [
    # Area
    "AreaStatus",
    "AreaStore",
    "MonitoredArea",
    # Intensity
    "intensity_float_to_int",
    "intensity_to_text",
    "pga_to_intensity",
    "pga_to_intensity_float",
    # Station
    "StationRecord",
    "parse_station_directory",
    # Reconcile
    "ChangedArea",
    "reconcile",
    # Formatter
    "format_status_message",
]
