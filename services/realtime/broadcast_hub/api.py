"""WebSocket endpoint and hub statistics route."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, WebSocket

from services.realtime.broadcast_hub.hub import BroadcastHub


def register_routes(*, router: APIRouter, hub: BroadcastHub) -> None:
    """Register ``/ws`` and ``/ws/stats`` on one router."""

    @router.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        connection = await hub.accept(websocket)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
                await hub.handle_frame(connection.id, raw)
        finally:
            await hub.disconnect(connection.id, reason="client closed")

    @router.get("/ws/stats")
    async def websocket_stats() -> dict[str, Any]:
        return hub.stats()
