from __future__ import annotations

from care_chat.domain.entities.message import Message
from care_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        seq=model.seq,
        sender_id=model.sender_id,
        recipient_id=model.recipient_id,
        sender_role=model.sender_role,
        sender_name=model.sender_name,
        content=model.content,
        message_type=model.message_type,
        is_read=model.is_read,
        read_at=model.read_at,
        is_deleted=model.is_deleted,
        created_at=model.created_at,
    )


def entity_to_values(entity: Message) -> dict[str, object]:
    """Column values for an INSERT; ``seq`` is always generated by the database."""
    return {
        "id": entity.id,
        "sender_id": entity.sender_id,
        "recipient_id": entity.recipient_id,
        "sender_role": entity.sender_role,
        "sender_name": entity.sender_name,
        "content": entity.content,
        "message_type": entity.message_type,
        "is_read": entity.is_read,
        "read_at": entity.read_at,
        "is_deleted": entity.is_deleted,
        "created_at": entity.created_at,
    }
