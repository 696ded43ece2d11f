"""Dashboard WebSocket — the push channel for new analyses.

Path: /ws

Every accepted connection joins the ConnectionRegistry and receives each
``{type, data}`` message the ingestion cycle broadcasts.  Anything the
client sends is read and discarded; the socket is only held open until
the client goes away.
"""

from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ecomarine.services.connection_manager import ConnectionRegistry


def create_dashboard_router(connections: ConnectionRegistry) -> APIRouter:
    """Factory that creates the dashboard WebSocket endpoint."""

    router = APIRouter()

    @router.websocket("/ws")
    async def dashboard_ws(websocket: WebSocket) -> None:
        await connections.register(websocket)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            connections.unregister(websocket)

    return router
