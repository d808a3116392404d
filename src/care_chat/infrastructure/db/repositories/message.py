from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, case, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from care_chat.application.repositories.message import PartnerAggregate
from care_chat.domain.entities.message import Message
from care_chat.infrastructure.db.mappers import message as mapper
from care_chat.infrastructure.db.models.message import MessageModel


def _between(user_id: str, partner_id: str):
    return or_(
        and_(MessageModel.sender_id == user_id, MessageModel.recipient_id == partner_id),
        and_(MessageModel.sender_id == partner_id, MessageModel.recipient_id == user_id),
    )


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_between(
        self,
        user_id: str,
        partner_id: str,
        *,
        limit: int = 50,
        before: datetime | None = None,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(_between(user_id, partner_id), MessageModel.is_deleted.is_(False))
            .order_by(MessageModel.created_at.desc(), MessageModel.seq.desc())
            .limit(limit)
        )
        if before is not None:
            stmt = stmt.where(MessageModel.created_at < before)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def aggregate_by_partner(self, viewer_id: str) -> list[PartnerAggregate]:
        partner = case(
            (MessageModel.sender_id == viewer_id, MessageModel.recipient_id),
            else_=MessageModel.sender_id,
        )
        unread = case(
            (
                and_(
                    MessageModel.recipient_id == viewer_id,
                    MessageModel.is_read.is_(False),
                ),
                1,
            ),
            else_=0,
        )
        ranked = (
            select(
                MessageModel,
                partner.label("partner_id"),
                func.row_number()
                .over(
                    partition_by=partner,
                    order_by=(MessageModel.created_at.desc(), MessageModel.seq.desc()),
                )
                .label("rn"),
                func.sum(unread).over(partition_by=partner).label("unread_count"),
            )
            .where(
                or_(
                    MessageModel.sender_id == viewer_id,
                    MessageModel.recipient_id == viewer_id,
                ),
                MessageModel.is_deleted.is_(False),
            )
            .subquery("ranked")
        )
        latest = aliased(MessageModel, ranked)
        stmt = (
            select(latest, ranked.c.partner_id, ranked.c.unread_count)
            .where(ranked.c.rn == 1)
            .order_by(ranked.c.created_at.desc(), ranked.c.seq.desc())
        )
        result = await self._session.execute(stmt)
        return [
            PartnerAggregate(
                partner_id=partner_id,
                last_message=mapper.model_to_entity(model),
                unread_count=int(unread_count or 0),
            )
            for model, partner_id, unread_count in result.all()
        ]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, message: Message) -> Message:
        stmt = (
            insert(MessageModel)
            .values(**mapper.entity_to_values(message))
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        return mapper.model_to_entity(result.scalar_one())

    async def mark_conversation_read(
        self,
        viewer_id: str,
        partner_id: str,
        read_at: datetime,
    ) -> dict[UUID, datetime]:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.sender_id == partner_id,
                MessageModel.recipient_id == viewer_id,
                MessageModel.is_read.is_(False),
                MessageModel.is_deleted.is_(False),
                MessageModel.created_at <= read_at,
            )
            .values(is_read=True, read_at=read_at)
            .returning(MessageModel.id, MessageModel.read_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return {row.id: row.read_at for row in result.all()}

    async def mark_read(
        self,
        message_id: UUID,
        viewer_id: str,
        read_at: datetime,
    ) -> Message | None:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.id == message_id,
                MessageModel.recipient_id == viewer_id,
                MessageModel.is_deleted.is_(False),
            )
            .values(
                is_read=True,
                read_at=func.coalesce(MessageModel.read_at, read_at),
            )
            .returning(MessageModel)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None
