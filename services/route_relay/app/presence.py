"""Connection bookkeeping for real-time clients."""

from __future__ import annotations

from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.common.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class PresenceRegistry:
    def __init__(self) -> None:
        self._clients: dict[str, WebSocket] = {}

    def connect(self, websocket: WebSocket) -> str:
        client_id = uuid4().hex
        self._clients[client_id] = websocket
        logger.info("user_connected", client_id=client_id, online=len(self._clients))
        return client_id

    def disconnect(self, client_id: str) -> None:
        self._clients.pop(client_id, None)
        logger.info("user_disconnected", client_id=client_id, online=len(self._clients))

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._clients


registry = PresenceRegistry()


@router.websocket("/ws")
async def presence(websocket: WebSocket) -> None:
    await websocket.accept()
    client_id = registry.connect(websocket)
    try:
        await websocket.send_json({"type": "connected", "id": client_id})
        while True:
            text = await websocket.receive_text()
            if text == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        registry.disconnect(client_id)
