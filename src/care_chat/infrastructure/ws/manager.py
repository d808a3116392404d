"""In-process WebSocket connection registry."""
from __future__ import annotations

import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks live WebSocket connections per user address.

    A user may hold any number of connections (one per device); pushing to an
    address writes to all of them. Sockets that fail on write are dropped.
    """

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = {}

    async def connect(self, ws: WebSocket, address: str, *, subprotocol: str | None = None) -> None:
        await ws.accept(subprotocol=subprotocol)
        self._connections.setdefault(address, set()).add(ws)
        logger.debug("WS connected: %s (devices=%d)", address, len(self._connections[address]))

    def disconnect(self, ws: WebSocket, address: str) -> None:
        conns = self._connections.get(address)
        if conns:
            conns.discard(ws)
            if not conns:
                del self._connections[address]
        logger.debug("WS disconnected: %s", address)

    def is_online(self, address: str) -> bool:
        return bool(self._connections.get(address))

    def connection_count(self, address: str) -> int:
        return len(self._connections.get(address, ()))

    async def send_to_address(self, address: str, raw: str) -> int:
        """Write ``raw`` to every connection under ``address``; return delivered count."""
        delivered = 0
        dead: list[WebSocket] = []
        for ws in list(self._connections.get(address, ())):
            try:
                await ws.send_text(raw)
                delivered += 1
            except Exception:
                logger.debug("Dropping dead WS for %s", address, exc_info=True)
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws, address)
        return delivered
