from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Query

from care_chat.api.deps import CurrentPrincipal, NotifierDep, UoWDep
from care_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from care_chat.application.dto.message import HistoryQueryDTO
from care_chat.config import settings
from care_chat.services import delivery_service, message_service

router = APIRouter(prefix="/api/v1/chat/messages", tags=["messages"])


@router.get("/{partner_id}", response_model=list[MessageResponse])
async def get_history(
    partner_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int = Query(settings.HISTORY_DEFAULT_LIMIT, ge=1, le=settings.HISTORY_MAX_LIMIT),
    before: datetime | None = Query(None),
) -> list[MessageResponse]:
    if before is not None and before.tzinfo is None:
        before = before.replace(tzinfo=timezone.utc)
    messages = await message_service.list_history(
        principal, partner_id, HistoryQueryDTO(limit=limit, before=before), uow,
    )
    return [MessageResponse.from_entity(m) for m in messages]


@router.post("", response_model=MessageResponse, status_code=201)
async def send_message(
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    notifier: NotifierDep,
) -> MessageResponse:
    msg = await delivery_service.send_and_deliver(principal, body.to_dto(), uow, notifier)
    return MessageResponse.from_entity(msg)


@router.patch("/{message_id}/read", response_model=MessageResponse)
async def mark_read(
    message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    notifier: NotifierDep,
) -> MessageResponse:
    msg = await delivery_service.mark_read_and_notify(principal, message_id, uow, notifier)
    return MessageResponse.from_entity(msg)
