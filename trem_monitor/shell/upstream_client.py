"""Upstream API Client - Imperative Shell.

This module handles HTTP communication with the TREM data API.
All I/O is contained here; parsing and reconciliation are in the core
module. Failures are returned as FetchResult values, never raised.
"""

import enum
import json
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any

import requests
from urllib3.exceptions import HTTPError as TransportError, ReadTimeoutError

from trem_monitor.core.config import ServerPools, TimeoutConfig
from trem_monitor.core.errors import (
    HttpError,
    MalformedDataError,
    NetworkError,
    UpstreamError,
    UpstreamTimeoutError,
)


logger = logging.getLogger(__name__)


STATION_PATH = "/api/v1/trem/station"
REALTIME_PATH = "/api/v2/trem/rts"

# Body is read in slices so the deadline is checked between socket reads
READ_CHUNK_SIZE = 64 * 1024


@dataclass
class FetchResult:
    """Result of a single upstream fetch.

    Attributes:
        success: Whether a JSON body was received
        data: Decoded JSON body (None on failure)
        error: The failure (None on success)
        status_code: HTTP status code, if a response arrived
    """
    success: bool
    data: Any = None
    error: UpstreamError | None = None
    status_code: int | None = None


class Connectivity(enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class ConnectivityTracker:
    """Two-state online/offline tracker.

    Only transitions are reported, so repeated failures while offline
    produce a single log line instead of one per request.
    """

    def __init__(self) -> None:
        self._state = Connectivity.ONLINE
        self._lock = threading.Lock()

    @property
    def state(self) -> Connectivity:
        return self._state

    @property
    def online(self) -> bool:
        return self._state is Connectivity.ONLINE

    def record_success(self) -> bool:
        """Mark upstream reachable. Returns True if this is a recovery."""
        with self._lock:
            changed = self._state is Connectivity.OFFLINE
            self._state = Connectivity.ONLINE
            return changed

    def record_failure(self) -> bool:
        """Mark upstream unreachable. Returns True on the first failure."""
        with self._lock:
            changed = self._state is Connectivity.ONLINE
            self._state = Connectivity.OFFLINE
            return changed


def _limit_read_timeout(response: requests.Response, seconds: float) -> None:
    """Cap the next socket read at the given number of seconds."""
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is not None:
        sock.settimeout(seconds)


class UpstreamClient:
    """Client for fetching station metadata and realtime readings.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        servers: ServerPools | None = None,
        timeouts: TimeoutConfig | None = None,
        session: requests.Session | None = None,
        tracker: ConnectivityTracker | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize upstream client.

        Args:
            servers: Server pools to pick hosts from
            timeouts: Per-request-type timeouts in seconds
            session: HTTP session (created if not provided)
            tracker: Connectivity tracker (created if not provided)
            rng: Random source for host selection
        """
        self.servers = servers or ServerPools()
        self.timeouts = timeouts or TimeoutConfig()
        self.session = session or requests.Session()
        self.tracker = tracker or ConnectivityTracker()
        self._rng = rng or random.Random()

    def pick_server(self, pool: str) -> str:
        """Pick a host uniformly at random from a named pool."""
        return self._rng.choice(self.servers.get(pool))

    def build_url(self, pool: str, path: str) -> str:
        """Build a request URL against a randomly chosen host."""
        return f"{self.servers.scheme}://{self.pick_server(pool)}{path}"

    def _read_body(self, response: requests.Response, deadline: float) -> bytes | None:
        """Read the whole body, or return None once the deadline passes.

        Each socket read is capped at the time left, so a server that
        trickles bytes cannot hold the request past the deadline.
        """
        chunks = []
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            _limit_read_timeout(response, remaining)
            chunk = response.raw.read1(READ_CHUNK_SIZE, decode_content=True)
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)

    def _request(self, url: str, timeout: float) -> FetchResult:
        deadline = time.monotonic() + timeout
        timed_out = FetchResult(
            success=False,
            error=UpstreamTimeoutError(f"Timed out after {timeout}s", url=url),
        )

        try:
            # A response that is not read to the end is closed on exit
            # rather than returned to the pool.
            with self.session.get(
                url,
                timeout=(timeout, timeout),
                headers={"Cache-Control": "no-cache"},
                stream=True,
            ) as response:
                status_code = response.status_code
                if not 200 <= status_code < 300:
                    return FetchResult(
                        success=False,
                        error=HttpError(
                            f"HTTP {status_code}",
                            url=url,
                            status_code=status_code,
                        ),
                        status_code=status_code,
                    )

                body = self._read_body(response, deadline)

        except (requests.Timeout, ReadTimeoutError):
            return timed_out
        except (requests.RequestException, TransportError) as e:
            return FetchResult(
                success=False,
                error=NetworkError(str(e), url=url),
            )

        if body is None:
            return timed_out

        try:
            data = json.loads(body)
        except ValueError as e:
            return FetchResult(
                success=False,
                error=MalformedDataError(f"Invalid JSON: {e}", url=url),
                status_code=status_code,
            )

        return FetchResult(
            success=True,
            data=data,
            status_code=status_code,
        )

    def fetch_json(self, url: str, timeout: float) -> FetchResult:
        """Fetch a JSON document with a hard timeout.

        This method performs HTTP I/O. Connectivity transitions are
        logged once per change of state.

        Args:
            url: URL to GET
            timeout: Deadline in seconds for the whole request

        Returns:
            FetchResult with the decoded body or the failure
        """
        result = self._request(url, timeout)

        if result.success:
            if self.tracker.record_success():
                logger.info("Upstream connection restored")
        elif self.tracker.record_failure():
            if isinstance(result.error, UpstreamTimeoutError):
                logger.error("Upstream request timed out | %s", url)
            else:
                logger.error("Upstream request failed: %s | %s", url, result.error)

        return result

    def fetch_station_directory(self) -> FetchResult:
        """Fetch the full station directory from the metadata pool."""
        url = self.build_url("api", STATION_PATH)
        return self.fetch_json(url, self.timeouts.station)

    def fetch_realtime(self) -> FetchResult:
        """Fetch the latest realtime readings from the load-balanced pool."""
        url = self.build_url("lb", REALTIME_PATH)
        return self.fetch_json(url, self.timeouts.realtime)

    def close(self) -> None:
        """Release pooled connections."""
        self.session.close()
