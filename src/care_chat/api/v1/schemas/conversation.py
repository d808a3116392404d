from __future__ import annotations

from care_chat.api.v1.schemas.message import MessageResponse
from care_chat.api.v1.schemas.user import UserResponse
from care_chat.application.dto.base import CamelModel
from care_chat.domain.entities.conversation import ConversationSummary


class ConversationResponse(CamelModel):
    partner_id: str
    partner: UserResponse | None
    last_message: MessageResponse
    unread_count: int

    @classmethod
    def from_entity(cls, summary: ConversationSummary) -> ConversationResponse:
        return cls(
            partner_id=summary.partner_id,
            partner=UserResponse.from_entity(summary.partner) if summary.partner else None,
            last_message=MessageResponse.from_entity(summary.last_message),
            unread_count=summary.unread_count,
        )
