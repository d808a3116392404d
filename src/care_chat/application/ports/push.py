from __future__ import annotations

from typing import Protocol

from care_chat.application.dto.events import ServerEvent


class PushNotifier(Protocol):
    """Best-effort delivery to every live connection joined under ``user_id``.

    Implementations must not raise when the user has no live connection.
    """

    async def push(self, user_id: str, event: ServerEvent) -> None: ...
