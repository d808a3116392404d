from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from care_chat.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class PartnerAggregate:
    """One row of the per-partner grouping of a viewer's messages."""

    partner_id: str
    last_message: Message
    unread_count: int


class MessageReader(Protocol):
    async def list_between(
        self,
        user_id: str,
        partner_id: str,
        *,
        limit: int = 50,
        before: datetime | None = None,
    ) -> list[Message]:
        """Newest-first page of non-deleted messages between two users."""
        ...

    async def aggregate_by_partner(self, viewer_id: str) -> list[PartnerAggregate]:
        """Latest message and unread count per partner, newest conversation first."""
        ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message: ...

    async def mark_conversation_read(
        self,
        viewer_id: str,
        partner_id: str,
        read_at: datetime,
    ) -> dict[UUID, datetime]:
        """Flip unread partner→viewer messages created up to ``read_at``.

        Single conditional update. Returns ``{message_id: read_at}`` for the
        rows this call changed.
        """
        ...

    async def mark_read(
        self,
        message_id: UUID,
        viewer_id: str,
        read_at: datetime,
    ) -> Message | None:
        """Set read state if the viewer is the recipient; keep an existing read_at."""
        ...
