"""Station Metadata Cache - Imperative Shell.

The station directory changes slowly, so it is fetched at most once per
TTL window and reused by every poll cycle in between.
"""

import logging
import time
from typing import Callable

from trem_monitor.core.errors import MalformedDataError
from trem_monitor.core.station import StationDirectory, parse_station_directory
from trem_monitor.shell.upstream_client import UpstreamClient


logger = logging.getLogger(__name__)


# Station metadata stays fresh for 5 minutes
DEFAULT_TTL_SECONDS = 300.0


class StationMetadataCache:
    """TTL cache over the upstream station directory.

    The cached directory is replaced wholesale on each successful fetch.
    A failed refresh keeps serving the previous directory.
    """

    def __init__(
        self,
        client: UpstreamClient,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            client: Upstream client used for refreshes
            ttl_seconds: How long a fetched directory stays fresh
            clock: Monotonic clock in seconds
        """
        self.client = client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._directory: StationDirectory | None = None
        self._fetched_at: float | None = None

    @property
    def age(self) -> float | None:
        """Seconds since the last successful fetch (None if never)."""
        if self._fetched_at is None:
            return None
        return self._clock() - self._fetched_at

    def is_fresh(self) -> bool:
        """Check if the cached directory is still within its TTL."""
        if self._directory is None or self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self.ttl_seconds

    def invalidate(self) -> None:
        """Force the next call to refetch (the stale copy is kept as fallback)."""
        self._fetched_at = None

    def _refresh(self) -> bool:
        result = self.client.fetch_station_directory()

        if not result.success:
            logger.error("Failed to fetch station metadata: %s", result.error)
            return False

        if not isinstance(result.data, dict):
            error = MalformedDataError("Station directory is not a JSON object")
            logger.error("Failed to fetch station metadata: %s", error)
            return False

        try:
            directory = parse_station_directory(result.data)
        except (TypeError, ValueError, OverflowError) as e:
            error = MalformedDataError(f"Unreadable station directory: {e}")
            logger.error("Failed to fetch station metadata: %s", error)
            return False

        self._directory = directory
        self._fetched_at = self._clock()
        logger.info("Station metadata updated: %d stations", len(self._directory))
        return True

    def get_station_info(self) -> StationDirectory | None:
        """Return the station directory, refreshing it when stale.

        This method may perform HTTP I/O. It never raises.

        Returns:
            Station directory, the stale copy if a refresh failed,
            or None if no directory has ever been fetched
        """
        if self.is_fresh():
            return self._directory

        self._refresh()
        return self._directory
