from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from care_chat.domain.value_objects.ids import conversation_key


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    sender_id: str
    recipient_id: str
    sender_role: str
    sender_name: str
    content: str
    message_type: str
    created_at: datetime
    is_read: bool = False
    read_at: datetime | None = None
    is_deleted: bool = False
    seq: int | None = None

    @property
    def conversation_key(self) -> str:
        return conversation_key(self.sender_id, self.recipient_id)

    def partner_of(self, user_id: str) -> str:
        return self.recipient_id if self.sender_id == user_id else self.sender_id
