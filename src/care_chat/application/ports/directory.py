from __future__ import annotations

from typing import Iterable, Protocol

from care_chat.domain.entities.user import User


class Directory(Protocol):
    """Read side of the user / role / assignment directory."""

    async def find_user(self, user_id: str) -> User | None: ...

    async def find_users(self, user_ids: Iterable[str]) -> dict[str, User]: ...

    async def assigned_patients(self, doctor_id: str) -> set[str]: ...

    async def assigned_doctor(self, patient_id: str) -> str | None: ...


class DirectoryWriter(Protocol):
    """Used only by the directory sync worker."""

    async def upsert_user(self, user: User) -> None: ...

    async def set_role(self, user_id: str, role: str) -> bool: ...

    async def set_assigned_doctor(self, patient_id: str, doctor_id: str | None) -> bool: ...

    async def deactivate(self, user_id: str) -> bool: ...
