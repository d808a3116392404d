from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from care_chat.domain.value_objects.enums import MessageType


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    recipient_id: str
    content: str
    message_type: MessageType = MessageType.TEXT


@dataclass(frozen=True, slots=True)
class HistoryQueryDTO:
    limit: int = 50
    before: datetime | None = None
