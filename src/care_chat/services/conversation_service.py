from __future__ import annotations

from care_chat.application.dto.principal import Principal
from care_chat.application.policies.permissions import visible_partner_ids
from care_chat.application.uow import UnitOfWork
from care_chat.domain.entities.conversation import ConversationSummary
from care_chat.domain.entities.user import User
from care_chat.domain.value_objects.enums import Role


async def list_conversations(
    principal: Principal,
    uow: UnitOfWork,
) -> list[ConversationSummary]:
    """One summary per partner, most recent conversation first.

    Grouping runs over the full message history; the doctor/assignment
    filter is applied to the grouped result.
    """
    groups = await uow.messages.aggregate_by_partner(principal.user_id)
    visible = await visible_partner_ids(
        principal, {g.partner_id for g in groups}, uow.directory,
    )
    groups = [g for g in groups if g.partner_id in visible]
    partners = await uow.directory.find_users(g.partner_id for g in groups)

    summaries = [
        ConversationSummary(
            partner_id=g.partner_id,
            partner=partners.get(g.partner_id),
            last_message=g.last_message,
            unread_count=g.unread_count,
        )
        for g in groups
    ]
    summaries.sort(key=lambda s: s.last_message.created_at, reverse=True)
    return summaries


async def unread_total(principal: Principal, uow: UnitOfWork) -> int:
    return sum(s.unread_count for s in await list_conversations(principal, uow))


async def list_contacts(principal: Principal, uow: UnitOfWork) -> list[User]:
    """Users the principal is expected to message, per the directory assignments."""
    if principal.role == Role.DOCTOR:
        ids = await uow.directory.assigned_patients(principal.user_id)
    elif principal.role == Role.PATIENT:
        doctor_id = await uow.directory.assigned_doctor(principal.user_id)
        ids = {doctor_id} if doctor_id else set()
    else:
        return []
    users = await uow.directory.find_users(ids)
    return sorted(
        (u for u in users.values() if u.is_active),
        key=lambda u: u.name.lower(),
    )
