"""Poll Loop - Wires Functional Core and Imperative Shell.

This module drives the fixed-interval cycle: fetch realtime readings,
reconcile them into the area store and push the snapshot to
subscribers. It's the "glue" that makes the application work.

Blocking HTTP runs in worker threads; the store is only written from
the event loop, so there is exactly one writer.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from trem_monitor.core.area import AreaStore
from trem_monitor.core.config import Config
from trem_monitor.core.errors import MissingMetadataError
from trem_monitor.core.formatter import (
    format_change_line,
    format_status_summary,
    should_log_change,
)
from trem_monitor.core.rate_limit import PollState, check_poll, is_heartbeat, record_tick
from trem_monitor.core.reconcile import ChangedArea, reconcile
from trem_monitor.shell.broadcast_hub import BroadcastHub
from trem_monitor.shell.station_cache import StationMetadataCache
from trem_monitor.shell.upstream_client import UpstreamClient


logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Result of one poll cycle.

    Attributes:
        ran: False if the tick was dropped by the rate limit
        tick: Number of the accepted tick (0 if dropped)
        fetched: Whether realtime data was received
        changed: Areas whose status changed this cycle
        broadcast: Whether the snapshot was pushed to subscribers
        delivered: Number of subscribers the snapshot reached
        heartbeat: Whether this was a forced refresh tick
        errors: Any errors that occurred
    """
    ran: bool
    tick: int = 0
    fetched: bool = False
    changed: list[ChangedArea] = field(default_factory=list)
    broadcast: bool = False
    delivered: int = 0
    heartbeat: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Returns True if no errors occurred."""
        return len(self.errors) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the cycle."""
        if not self.ran:
            return "Skipped (interval not elapsed)"
        return (
            f"Tick {self.tick}: "
            f"{'fetched' if self.fetched else 'fetch failed'}, "
            f"{len(self.changed)} areas changed, "
            f"{self.delivered} subscribers updated"
        )


class PollLoop:
    """Fixed-interval poll, reconcile and broadcast cycle.

    This class wires together:
    - Upstream client (fetches realtime readings)
    - Station metadata cache (station to area assignments)
    - Core functions (reconciliation, formatting, rate limiting)
    - Area store (per-area state)
    - Broadcast hub (subscriber fan-out)
    """

    def __init__(
        self,
        config: Config,
        store: AreaStore,
        client: UpstreamClient,
        station_cache: StationMetadataCache,
        hub: BroadcastHub,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the poll loop.

        Args:
            config: Application configuration
            store: Area store written by reconciliation
            client: Upstream client for realtime readings
            station_cache: Station metadata cache
            hub: Broadcast hub for subscribers
            clock: Monotonic clock in seconds
        """
        self.config = config
        self.store = store
        self.client = client
        self.station_cache = station_cache
        self.hub = hub
        self._clock = clock
        self._state = PollState()

    @property
    def tick_count(self) -> int:
        return self._state.tick_count

    def _log_changes(self, changed: list[ChangedArea]) -> None:
        for area in changed:
            if should_log_change(area, self.config.display_threshold):
                logger.info(format_change_line(area))

    async def run_cycle(self, now: float | None = None) -> CycleResult:
        """Run one poll cycle.

        This is the main entry point that:
        1. Drops the tick if the poll interval has not elapsed
        2. Fetches realtime readings (skips the rest on failure)
        3. Reconciles readings into the area store
        4. Broadcasts the full snapshot to subscribers
        5. Forces a refresh on heartbeat ticks

        Args:
            now: Monotonic time of the tick (defaults to the clock)

        Returns:
            CycleResult with details of what happened
        """
        if now is None:
            now = self._clock()

        decision = check_poll(now, self._state, self.config.poll_interval_seconds)
        if not decision.allowed:
            logger.debug("Poll tick dropped: %s", decision.reason)
            return CycleResult(ran=False)

        self._state = record_tick(now, self._state)
        result = CycleResult(
            ran=True,
            tick=self._state.tick_count,
            heartbeat=is_heartbeat(self._state.tick_count, self.config.heartbeat_every),
        )

        # Step 1: Fetch realtime readings
        fetch = await asyncio.to_thread(self.client.fetch_realtime)

        if fetch.success:
            result.fetched = True

            # Step 2: Reconcile against station metadata
            station_info = await asyncio.to_thread(self.station_cache.get_station_info)
            if station_info is None:
                error = MissingMetadataError("Cannot process readings: station metadata unavailable")
                logger.error(str(error))
                result.errors.append(str(error))

            result.changed = reconcile(fetch.data, station_info, self.store)

            # Step 3: Broadcast the full snapshot, changed or not
            result.delivered = await self.hub.broadcast()
            result.broadcast = True

            self._log_changes(result.changed)
        else:
            result.errors.append(f"Failed to fetch realtime data: {fetch.error}")

        # Step 4: Heartbeat refresh
        if result.heartbeat:
            logger.info(format_status_summary(self.store.snapshot()))
            if not result.broadcast:
                result.delivered = await self.hub.broadcast()
                result.broadcast = True

        logger.debug("Completed: %s", result.summary)

        return result

    async def run_forever(self, stop_event: asyncio.Event) -> None:
        """Tick on the poll interval until the stop event is set.

        A cycle that raises is logged and the loop carries on with the
        next tick.

        Args:
            stop_event: Set to stop the loop
        """
        interval = self.config.poll_interval_seconds
        logger.info("Poll loop started (interval %.1fs)", interval)

        while not stop_event.is_set():
            started = self._clock()

            try:
                await self.run_cycle(now=started)
            except Exception:
                logger.exception("Unexpected error in poll cycle")

            next_start = started + interval
            while not stop_event.is_set():
                remaining = next_start - self._clock()
                if remaining <= 0:
                    break
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    pass

        logger.info("Poll loop stopped after %d ticks", self.tick_count)
