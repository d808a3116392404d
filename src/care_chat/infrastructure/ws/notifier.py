"""PushNotifier implementations: in-process and Redis fan-out."""
from __future__ import annotations

import logging
from typing import Any

from care_chat.application.dto.events import ServerEvent, encode_event
from care_chat.application.ports.bus import EventPublisher
from care_chat.infrastructure.bus.serializer import dumps
from care_chat.infrastructure.ws.manager import ConnectionManager

logger = logging.getLogger(__name__)

PUSH_EVENT = "push"


class LocalPushNotifier:
    """Deliver straight to this process's connections."""

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    async def push(self, user_id: str, event: ServerEvent) -> None:
        delivered = await self._manager.send_to_address(user_id, encode_event(event))
        if not delivered:
            logger.debug("%s for %s dropped: no live connection", event.type, user_id)


class RedisPushNotifier:
    """Publish to the shared channel; every instance's subscriber delivers locally."""

    def __init__(self, publisher: EventPublisher, channel: str) -> None:
        self._publisher = publisher
        self._channel = channel

    async def push(self, user_id: str, event: ServerEvent) -> None:
        await self._publisher.publish(
            self._channel,
            PUSH_EVENT,
            {"user_id": user_id, "event": event},
        )


def make_fanout_handler(manager: ConnectionManager):
    """Pub/Sub callback that hands fanned-out pushes to the local manager."""

    async def _on_pubsub_event(event_type: str, data: dict[str, Any]) -> None:
        if event_type != PUSH_EVENT:
            return
        user_id = data.get("user_id")
        event = data.get("event")
        if not user_id or not event:
            return
        await manager.send_to_address(user_id, dumps(event))

    return _on_pubsub_event
