"""Client side of the real-time publish/subscribe channel."""

import json
import logging
from typing import Any, AsyncIterator, Protocol

import websockets
from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)

# Frames answered by the hub itself, never slideshow events
CONTROL_TYPES = {"pong", "error"}


class Channel(Protocol):
    async def publish(self, event_type: str, data: dict[str, Any]) -> None:
        ...


class WebSocketChannel:
    """JSON `{"type", "data"}` frames over a single WebSocket connection."""

    def __init__(self, url: str):
        self.url = url
        self._ws = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        self._ws = await websockets.connect(self.url)
        logger.info("Connected to %s", self.url)

    async def close(self) -> None:
        if self._ws is not None:
            ws, self._ws = self._ws, None
            await ws.close()

    async def publish(self, event_type: str, data: dict[str, Any]) -> None:
        if self._ws is None:
            logger.debug("Not connected, dropping %s event", event_type)
            return
        await self._ws.send(json.dumps({"type": event_type, "data": data}))
        logger.debug("Published %s: %s", event_type, data)

    async def events(self) -> AsyncIterator[tuple[str, dict[str, Any]]]:
        """Yield (type, data) for each slideshow event until the connection closes."""
        if self._ws is None:
            return
        try:
            async for raw in self._ws:
                try:
                    msg = json.loads(raw)
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Dropping non-JSON frame")
                    continue
                if not isinstance(msg, dict) or not isinstance(msg.get("type"), str):
                    logger.warning("Dropping frame without a type")
                    continue
                if msg["type"] in CONTROL_TYPES:
                    logger.debug("Hub replied %s: %s", msg["type"], msg.get("message", ""))
                    continue
                data = msg.get("data")
                yield msg["type"], data if isinstance(data, dict) else {}
        except ConnectionClosed as e:
            logger.warning("Channel closed: %s", e)
        finally:
            self._ws = None
