"""Funnel shared by the REST and live-channel paths.

Both paths persist through message_service and then push the same events, so
a message has exactly one stored representation whichever path created it.
Pushes are best-effort: a failed push is logged and never undoes the write.
"""
from __future__ import annotations

import logging
from uuid import UUID

from care_chat.application.dto.events import (
    MessagePayload,
    MessageReadEvent,
    MessageReadPayload,
    NewMessageEvent,
    ServerEvent,
    UserTypingEvent,
    UserTypingPayload,
)
from care_chat.application.dto.message import SendMessageDTO
from care_chat.application.dto.principal import Principal
from care_chat.application.ports.push import PushNotifier
from care_chat.application.uow import UnitOfWork
from care_chat.config import settings
from care_chat.domain.entities.message import Message
from care_chat.services import message_service

logger = logging.getLogger(__name__)


async def _safe_push(notifier: PushNotifier, user_id: str, event: ServerEvent) -> None:
    try:
        await notifier.push(user_id, event)
    except Exception:
        logger.exception("Push %s to %s failed", event.type, user_id)


async def send_and_deliver(
    principal: Principal,
    dto: SendMessageDTO,
    uow: UnitOfWork,
    notifier: PushNotifier,
) -> Message:
    msg = await message_service.send_message(
        principal, dto, uow, enforce_assignment=settings.ENFORCE_ASSIGNMENT_ON_SEND,
    )
    await _safe_push(
        notifier,
        msg.recipient_id,
        NewMessageEvent(data=MessagePayload.from_entity(msg)),
    )
    return msg


async def mark_read_and_notify(
    principal: Principal,
    message_id: UUID,
    uow: UnitOfWork,
    notifier: PushNotifier,
) -> Message:
    msg = await message_service.mark_read(principal, message_id, uow)
    assert msg.read_at is not None
    await _safe_push(
        notifier,
        msg.sender_id,
        MessageReadEvent(
            data=MessageReadPayload(message_id=msg.id, read_at=msg.read_at),
        ),
    )
    return msg


async def relay_typing(
    principal: Principal,
    recipient_id: str,
    is_typing: bool,
    notifier: PushNotifier,
) -> None:
    if not recipient_id:
        return
    await _safe_push(
        notifier,
        recipient_id,
        UserTypingEvent(
            data=UserTypingPayload(
                user_id=principal.user_id,
                user_name=principal.name,
                is_typing=is_typing,
            ),
        ),
    )
