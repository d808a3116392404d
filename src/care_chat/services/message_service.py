from __future__ import annotations

import logging
import uuid
from uuid import UUID

from care_chat.application.dto.message import HistoryQueryDTO, SendMessageDTO
from care_chat.application.dto.principal import Principal
from care_chat.application.exceptions import NotFoundError, ValidationError
from care_chat.application.policies.permissions import assert_can_message
from care_chat.application.ports.clock import Clock, SystemClock
from care_chat.application.uow import UnitOfWork
from care_chat.domain.entities.message import Message
from care_chat.domain.value_objects.enums import MessageType

logger = logging.getLogger(__name__)

_clock: Clock = SystemClock()


async def send_message(
    principal: Principal,
    dto: SendMessageDTO,
    uow: UnitOfWork,
    *,
    enforce_assignment: bool = False,
    clock: Clock = _clock,
) -> Message:
    """Persist one message from the principal to ``dto.recipient_id``.

    Raises ValidationError for blank content/recipient, NotFoundError for an
    unknown or inactive recipient. Retries are not deduplicated.
    """
    content = (dto.content or "").strip()
    recipient_id = (dto.recipient_id or "").strip()
    if not content or not recipient_id:
        raise ValidationError("Content and recipientId are required")
    try:
        msg_type = MessageType(dto.message_type)
    except ValueError as exc:
        raise ValidationError(f"Unknown messageType: {dto.message_type}") from exc

    recipient = await uow.directory.find_user(recipient_id)
    if recipient is None or not recipient.is_active:
        raise NotFoundError("Recipient not found")
    if enforce_assignment:
        await assert_can_message(principal, recipient, uow.directory)

    msg = Message(
        id=uuid.uuid4(),
        sender_id=principal.user_id,
        recipient_id=recipient.id,
        sender_role=str(principal.role),
        sender_name=principal.name,
        content=content,
        message_type=msg_type.value,
        created_at=clock.now(),
    )
    msg = await uow.messages_w.create(msg)
    await uow.commit()
    logger.info("Message %s: %s -> %s", msg.id, msg.sender_id, msg.recipient_id)
    return msg


async def list_history(
    principal: Principal,
    partner_id: str,
    query: HistoryQueryDTO,
    uow: UnitOfWork,
    *,
    clock: Clock = _clock,
) -> list[Message]:
    """Page of the conversation with ``partner_id``, oldest first.

    Not a pure read: every unread message from the partner to the principal
    (not only the returned page) is acknowledged as read. The returned
    messages are the snapshot taken before that acknowledgement.
    """
    if query.limit < 1:
        raise ValidationError("limit must be positive")

    page = await uow.messages.list_between(
        principal.user_id, partner_id, limit=query.limit, before=query.before,
    )
    now = clock.now()
    acknowledged = await uow.messages_w.mark_conversation_read(
        principal.user_id, partner_id, now,
    )
    await uow.commit()
    if acknowledged:
        logger.debug(
            "Read-on-fetch: %d message(s) from %s read by %s",
            len(acknowledged), partner_id, principal.user_id,
        )

    page.reverse()
    return page


async def mark_read(
    principal: Principal,
    message_id: UUID,
    uow: UnitOfWork,
    *,
    clock: Clock = _clock,
) -> Message:
    msg = await uow.messages_w.mark_read(message_id, principal.user_id, clock.now())
    if msg is None:
        raise NotFoundError("Message not found")
    await uow.commit()
    return msg
