from __future__ import annotations

from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from care_chat.domain.entities.user import User
from care_chat.domain.value_objects.enums import Role
from care_chat.infrastructure.db.mappers import user as mapper
from care_chat.infrastructure.db.models.user import UserModel


class DirectoryReaderRepo:
    """Directory queries over the locally mirrored ``directory_users`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_user(self, user_id: str) -> User | None:
        model = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(model) if model else None

    async def find_users(self, user_ids: Iterable[str]) -> dict[str, User]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self._session.execute(
            select(UserModel).where(UserModel.id.in_(ids))
        )
        return {m.id: mapper.model_to_entity(m) for m in result.scalars().all()}

    async def assigned_patients(self, doctor_id: str) -> set[str]:
        stmt = select(UserModel.id).where(
            UserModel.assigned_doctor_id == doctor_id,
            UserModel.role == Role.PATIENT,
        )
        result = await self._session.execute(stmt)
        return set(result.scalars().all())

    async def assigned_doctor(self, patient_id: str) -> str | None:
        stmt = select(UserModel.assigned_doctor_id).where(UserModel.id == patient_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


class DirectoryWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert_user(self, user: User) -> None:
        values = mapper.entity_to_values(user)
        stmt = (
            pg_insert(UserModel)
            .values(**values)
            .on_conflict_do_update(
                index_elements=[UserModel.id],
                set_={k: v for k, v in values.items() if k != "id"},
            )
        )
        await self._session.execute(stmt)

    async def set_role(self, user_id: str, role: str) -> bool:
        return await self._update(user_id, role=role)

    async def set_assigned_doctor(self, patient_id: str, doctor_id: str | None) -> bool:
        return await self._update(patient_id, assigned_doctor_id=doctor_id)

    async def deactivate(self, user_id: str) -> bool:
        return await self._update(user_id, is_active=False)

    async def _update(self, user_id: str, **values: object) -> bool:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0
