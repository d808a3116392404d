from __future__ import annotations

from care_chat.application.dto.base import CamelModel
from care_chat.application.dto.events import MessagePayload
from care_chat.application.dto.message import SendMessageDTO
from care_chat.domain.value_objects.enums import MessageType


class SendMessageRequest(CamelModel):
    recipient_id: str
    content: str
    message_type: MessageType = MessageType.TEXT

    def to_dto(self) -> SendMessageDTO:
        return SendMessageDTO(
            recipient_id=self.recipient_id,
            content=self.content,
            message_type=self.message_type,
        )


class MessageResponse(MessagePayload):
    """Same representation as the ``data`` of live-channel message events."""
