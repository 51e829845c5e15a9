"""Subscriber server - FastAPI application.

Serves the area snapshot over WebSocket (push-only) and plain HTTP, and
runs the poll loop for the lifetime of the application.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from trem_monitor import __version__
from trem_monitor.core.area import AreaStore
from trem_monitor.core.config import Config
from trem_monitor.orchestrator import PollLoop
from trem_monitor.shell.broadcast_hub import BroadcastHub
from trem_monitor.shell.station_cache import StationMetadataCache
from trem_monitor.shell.upstream_client import UpstreamClient


logger = logging.getLogger(__name__)


def create_app(
    config: Config,
    client: UpstreamClient | None = None,
    station_cache: StationMetadataCache | None = None,
    start_poller: bool = True,
) -> FastAPI:
    """Build the application and wire its components.

    Args:
        config: Application configuration
        client: Upstream client (created if not provided)
        station_cache: Station metadata cache (created if not provided)
        start_poller: Run the poll loop during the application lifespan

    Returns:
        Configured FastAPI application
    """
    client = client or UpstreamClient(servers=config.servers, timeouts=config.timeouts)
    station_cache = station_cache or StationMetadataCache(
        client,
        ttl_seconds=config.station_cache_ttl_seconds,
    )
    store = AreaStore(config.monitored_areas)
    hub = BroadcastHub(store)
    poll_loop = PollLoop(config, store, client, station_cache, hub)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop_event = asyncio.Event()
        task = None

        if start_poller:
            # Warm the station cache before the first realtime poll
            await asyncio.to_thread(station_cache.get_station_info)
            task = asyncio.create_task(poll_loop.run_forever(stop_event))

        try:
            yield
        finally:
            logger.info("Shutting down")
            stop_event.set()
            if task is not None:
                await task
            await hub.close_all()
            client.close()

    app = FastAPI(
        title="TREM Area Monitor",
        description="Realtime seismic intensity for monitored areas",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.hub = hub
    app.state.poll_loop = poll_loop

    @app.websocket("/")
    @app.websocket("/ws")
    async def subscribe(websocket: WebSocket) -> None:
        await hub.connect(websocket)
        if websocket not in hub:
            return

        try:
            # Subscribers are not expected to send anything; text and binary
            # frames are discarded and reading only detects the disconnect.
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            pass
        finally:
            hub.disconnect(websocket)

    @app.get("/status")
    async def status() -> dict[str, Any]:
        """Current snapshot, in the same shape pushed to subscribers."""
        return hub.current_message()

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "connectivity": client.tracker.state.value,
            "tick_count": poll_loop.tick_count,
            "subscribers": hub.subscriber_count,
        }

    return app
