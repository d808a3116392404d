"""Server → client push events.

Every event is its own model tagged by ``type``; ``ServerEvent`` is the union
accepted by push notifiers.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import Field, TypeAdapter

from care_chat.application.dto.base import CamelModel
from care_chat.domain.entities.message import Message


class MessagePayload(CamelModel):
    id: UUID
    sender_id: str
    recipient_id: str
    sender_role: str
    sender_name: str
    content: str
    message_type: str
    is_read: bool
    read_at: datetime | None
    created_at: datetime
    conversation_id: str

    @classmethod
    def from_entity(cls, message: Message) -> MessagePayload:
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            recipient_id=message.recipient_id,
            sender_role=message.sender_role,
            sender_name=message.sender_name,
            content=message.content,
            message_type=message.message_type,
            is_read=message.is_read,
            read_at=message.read_at,
            created_at=message.created_at,
            conversation_id=message.conversation_key,
        )


class MessageReadPayload(CamelModel):
    message_id: UUID
    read_at: datetime


class UserTypingPayload(CamelModel):
    user_id: str
    user_name: str
    is_typing: bool


class ErrorPayload(CamelModel):
    code: str
    message: str = ""


class NewMessageEvent(CamelModel):
    type: Literal["new_message"] = "new_message"
    data: MessagePayload


class MessageSentEvent(CamelModel):
    type: Literal["message_sent"] = "message_sent"
    data: MessagePayload


class MessageReadEvent(CamelModel):
    type: Literal["message_read"] = "message_read"
    data: MessageReadPayload


class UserTypingEvent(CamelModel):
    type: Literal["user_typing"] = "user_typing"
    data: UserTypingPayload


class ErrorEvent(CamelModel):
    type: Literal["error"] = "error"
    data: ErrorPayload


class PongEvent(CamelModel):
    type: Literal["pong"] = "pong"
    data: dict[str, str] = Field(default_factory=dict)


ServerEvent = Annotated[
    Union[
        NewMessageEvent,
        MessageSentEvent,
        MessageReadEvent,
        UserTypingEvent,
        ErrorEvent,
        PongEvent,
    ],
    Field(discriminator="type"),
]

server_event_adapter: TypeAdapter[ServerEvent] = TypeAdapter(ServerEvent)


def encode_event(event: CamelModel) -> str:
    return event.model_dump_json(by_alias=True)
