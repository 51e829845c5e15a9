"""Realtime area intensity monitor for TREM station data."""

__version__ = "1.0.0"
