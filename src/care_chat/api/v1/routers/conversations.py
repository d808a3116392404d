from __future__ import annotations

from fastapi import APIRouter

from care_chat.api.deps import CurrentPrincipal, UoWDep
from care_chat.api.v1.schemas.common import UnreadCountResponse
from care_chat.api.v1.schemas.conversation import ConversationResponse
from care_chat.api.v1.schemas.user import UserResponse
from care_chat.services import conversation_service

router = APIRouter(prefix="/api/v1/chat", tags=["conversations"])


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[ConversationResponse]:
    summaries = await conversation_service.list_conversations(principal, uow)
    return [ConversationResponse.from_entity(s) for s in summaries]


@router.get("/conversations/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> UnreadCountResponse:
    total = await conversation_service.unread_total(principal, uow)
    return UnreadCountResponse(total=total)


@router.get("/contacts", response_model=list[UserResponse])
async def list_contacts(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[UserResponse]:
    users = await conversation_service.list_contacts(principal, uow)
    return [UserResponse.from_entity(u) for u in users]
