"""WebSocket client → server envelopes.

Each inbound event is a separate model discriminated by ``type``; the payload
lives under ``data`` in camelCase.
"""
from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import Field, TypeAdapter

from care_chat.application.dto.base import CamelModel
from care_chat.domain.value_objects.enums import MessageType


class SendMessageData(CamelModel):
    recipient_id: str
    content: str
    message_type: MessageType = MessageType.TEXT


class MarkReadData(CamelModel):
    message_id: UUID


class TypingData(CamelModel):
    recipient_id: str
    is_typing: bool = True


class SendMessageIn(CamelModel):
    type: Literal["send_message"]
    data: SendMessageData


class MarkReadIn(CamelModel):
    type: Literal["mark_read"]
    data: MarkReadData


class TypingIn(CamelModel):
    type: Literal["typing"]
    data: TypingData


class PingIn(CamelModel):
    type: Literal["ping"]
    data: dict[str, str] = Field(default_factory=dict)


ClientEvent = Annotated[
    Union[SendMessageIn, MarkReadIn, TypingIn, PingIn],
    Field(discriminator="type"),
]

client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)

KNOWN_TYPES = frozenset({"send_message", "mark_read", "typing", "ping"})


def parse_client_event(raw: str) -> ClientEvent:
    """Raises pydantic.ValidationError on malformed or unknown events."""
    return client_event_adapter.validate_json(raw)


class WsEnvelope(CamelModel):
    """Loose envelope, used only to classify events that failed strict parsing."""

    type: str
    data: dict = Field(default_factory=dict)


def classify_invalid(raw: str) -> str:
    """Error code for a frame that ``parse_client_event`` rejected."""
    try:
        envelope = WsEnvelope.model_validate_json(raw)
    except ValueError:
        return "invalid_payload"
    return "invalid_payload" if envelope.type in KNOWN_TYPES else "unknown_type"
