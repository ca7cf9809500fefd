"""WebSocket hub for real-time slideshow sync between display and management clients."""

import json
import logging

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from slidecast.schemas.slideshow import EVENT_MODELS

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages active WebSocket connections."""

    def __init__(self):
        self._connections: list[WebSocket] = []

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self._connections.append(ws)
        logger.info("Client connected (%d open)", len(self._connections))

    def disconnect(self, ws: WebSocket):
        if ws in self._connections:
            self._connections.remove(ws)
        logger.info("Client disconnected (%d open)", len(self._connections))

    async def broadcast(self, event_type: str, data: dict, exclude: WebSocket | None = None) -> int:
        """Send an event to every connection except `exclude`.

        Delivery is best effort; sockets that fail are dropped. Returns the
        number of clients reached.
        """
        message = {"type": event_type, "data": data}
        sent = 0
        dead = []
        for ws in list(self._connections):
            if ws == exclude:
                continue
            try:
                await ws.send_json(message)
                sent += 1
            except Exception as e:
                logger.warning("Dropping connection after send failure: %s", e)
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)
        return sent

    @property
    def connection_count(self) -> int:
        return len(self._connections)


manager = ConnectionManager()


async def websocket_hub(ws: WebSocket):
    """WebSocket endpoint: relays slideshow events from one client to all others.

    Client sends:
      {"type": "navigation", "data": {"action": "next", "index": 4}}
      {"type": "slideAction", "data": {"action": "pause"}}
      {"type": "ping"}
    """
    await manager.connect(ws)

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                await ws.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            msg_type = msg.get("type", "") if isinstance(msg, dict) else ""

            if msg_type == "ping":
                await ws.send_json({"type": "pong"})
                continue

            model = EVENT_MODELS.get(msg_type)
            if model is None:
                await ws.send_json({"type": "error", "message": f"Unknown type: {msg_type}"})
                continue

            try:
                event = model.model_validate(msg.get("data") or {})
            except ValidationError as e:
                logger.warning("Rejected malformed %s event: %s", msg_type, e.errors()[:1])
                await ws.send_json({"type": "error", "message": f"Invalid {msg_type} payload"})
                continue

            await manager.broadcast(msg_type, event.model_dump(mode="json", by_alias=True), exclude=ws)
    except WebSocketDisconnect:
        logger.debug("Client closed the connection")
    finally:
        manager.disconnect(ws)
