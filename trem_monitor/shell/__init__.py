"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Upstream TREM API client (HTTP)
- Station metadata cache (HTTP, cached)
- Broadcast hub (WebSocket subscribers)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from trem_monitor.shell.upstream_client import UpstreamClient, FetchResult
from trem_monitor.shell.station_cache import StationMetadataCache
from trem_monitor.shell.broadcast_hub import BroadcastHub
from trem_monitor.shell.config_loader import load_config

__all__ = [
    "UpstreamClient",
    "FetchResult",
    "StationMetadataCache",
    "BroadcastHub",
    "load_config",
]
