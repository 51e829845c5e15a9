"""Broadcast Hub - Imperative Shell.

Push-only fan-out of the area snapshot to WebSocket subscribers. Sends
are fire-and-forget: a subscriber that is not ready is skipped for that
message, one whose send fails is dropped, and nothing is retried. There is no
backpressure handling; messages are small and sent once a second.
"""

import logging
from typing import Any

from fastapi.websockets import WebSocket, WebSocketState

from trem_monitor.core.area import AreaStore
from trem_monitor.core.formatter import format_status_message


logger = logging.getLogger(__name__)


class BroadcastHub:
    """Tracks connected subscribers and pushes snapshots to them.

    All methods are coroutines run on the event loop that also runs the
    poll loop, so reads of the store never interleave with writes.
    """

    def __init__(self, store: AreaStore) -> None:
        """Initialize the hub.

        Args:
            store: Area store whose snapshot is sent to subscribers
        """
        self.store = store
        self._clients: set[WebSocket] = set()

    def __contains__(self, websocket: object) -> bool:
        return websocket in self._clients

    @property
    def subscriber_count(self) -> int:
        return len(self._clients)

    def current_message(self) -> dict[str, Any]:
        """Build the full status message from the store."""
        return format_status_message(self.store.snapshot())

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a subscriber and send it the current snapshot."""
        await websocket.accept()
        self._clients.add(websocket)
        logger.info("Subscriber connected (%d total)", len(self._clients))

        if not await self._send(websocket, self.current_message()):
            self.disconnect(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        """Forget a subscriber. Unknown subscribers are ignored."""
        if websocket in self._clients:
            self._clients.discard(websocket)
            logger.info("Subscriber disconnected (%d total)", len(self._clients))

    async def _send(self, websocket: WebSocket, message: dict[str, Any]) -> bool:
        try:
            await websocket.send_json(message)
        except Exception as e:  # noqa: BLE001
            logger.debug("Dropping subscriber after failed send: %s", e)
            return False
        return True

    async def broadcast(self, message: dict[str, Any] | None = None) -> int:
        """Send a message to every ready subscriber.

        Iterates over a copy of the subscriber set so connects and
        disconnects during the fan-out are safe.

        Args:
            message: Message to send (defaults to the current snapshot)

        Returns:
            Number of subscribers the message was delivered to
        """
        if message is None:
            message = self.current_message()

        delivered = 0
        for websocket in list(self._clients):
            if websocket.client_state is not WebSocketState.CONNECTED:
                continue
            if await self._send(websocket, message):
                delivered += 1
            else:
                self.disconnect(websocket)

        return delivered

    async def close_all(self) -> None:
        """Close every subscriber connection (used on shutdown)."""
        for websocket in list(self._clients):
            if websocket.client_state is WebSocketState.CONNECTED:
                try:
                    await websocket.close()
                except Exception as e:  # noqa: BLE001
                    logger.debug("Error closing subscriber: %s", e)
            self._clients.discard(websocket)

        logger.info("All subscribers closed")
