"""Registry of live dashboard WebSocket connections.

Best-effort, at-most-once fan-out: every message is serialised once and
sent to each connection that is currently open.  Connections that are
closing or closed are skipped but not removed; removal happens only when
the endpoint sees the disconnect.  Nothing is buffered or replayed.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Set of connected dashboard clients.

    Mutated only from the event loop, so no lock is taken.
    """

    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)
        logger.info("Dashboard client connected (%d total)", len(self._connections))

    def unregister(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info("Dashboard client disconnected (%d remaining)", len(self._connections))

    @property
    def active_count(self) -> int:
        return len(self._connections)

    def __contains__(self, websocket: object) -> bool:
        return websocket in self._connections

    async def broadcast(self, event_type: str, data: Any) -> int:
        """Send ``{"type": event_type, "data": data}`` to every open client.

        Returns the number of clients the message was handed to.
        """
        message = json.dumps({"type": event_type, "data": data}, default=str)
        delivered = 0

        for ws in list(self._connections):
            if ws.client_state != WebSocketState.CONNECTED:
                continue
            try:
                await ws.send_text(message)
            except Exception as exc:
                logger.debug("Send to dashboard client failed: %s", exc)
                continue
            delivered += 1

        logger.debug("Broadcast %s to %d client(s)", event_type, delivered)
        return delivered
