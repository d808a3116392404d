"""Shared test fixtures."""
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable
from uuid import UUID

import pytest

from care_chat.application.dto.principal import Principal
from care_chat.application.repositories.message import PartnerAggregate
from care_chat.domain.entities.message import Message
from care_chat.domain.entities.user import User
from care_chat.domain.value_objects.enums import MessageType, Role

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = T0) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 1) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now


def make_user(
    user_id: str,
    *,
    role: str = Role.PATIENT,
    display_name: str | None = None,
    is_active: bool = True,
    assigned_doctor_id: str | None = None,
) -> User:
    return User(
        id=user_id,
        email=f"{user_id}@example.org",
        display_name=display_name if display_name is not None else user_id.title(),
        role=str(role),
        is_active=is_active,
        assigned_doctor_id=assigned_doctor_id,
    )


def make_message(
    sender_id: str,
    recipient_id: str,
    *,
    content: str = "hello",
    created_at: datetime = T0,
    is_read: bool = False,
    is_deleted: bool = False,
    sender_role: str = Role.PATIENT,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        sender_id=sender_id,
        recipient_id=recipient_id,
        sender_role=str(sender_role),
        sender_name=sender_id.title(),
        content=content,
        message_type=MessageType.TEXT.value,
        created_at=created_at,
        is_read=is_read,
        read_at=created_at if is_read else None,
        is_deleted=is_deleted,
    )


def principal_for(user: User, *, expires_at: datetime | None = None) -> Principal:
    return Principal(
        user_id=user.id,
        email=user.email,
        role=Role(user.role),
        display_name=user.display_name,
        expires_at=expires_at,
    )


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    def _visible(self) -> list[Message]:
        return [m for m in self._messages if not m.is_deleted]

    async def list_between(
        self,
        user_id: str,
        partner_id: str,
        *,
        limit: int = 50,
        before: datetime | None = None,
    ) -> list[Message]:
        rows = [
            m for m in self._visible()
            if (m.sender_id, m.recipient_id) in ((user_id, partner_id), (partner_id, user_id))
            and (before is None or m.created_at < before)
        ]
        rows.sort(key=lambda m: (m.created_at, m.seq or 0), reverse=True)
        return rows[:limit]

    async def aggregate_by_partner(self, viewer_id: str) -> list[PartnerAggregate]:
        groups: dict[str, list[Message]] = {}
        for m in self._visible():
            if viewer_id in (m.sender_id, m.recipient_id):
                groups.setdefault(m.partner_of(viewer_id), []).append(m)
        result = [
            PartnerAggregate(
                partner_id=partner_id,
                last_message=max(msgs, key=lambda m: (m.created_at, m.seq or 0)),
                unread_count=sum(
                    1 for m in msgs if m.recipient_id == viewer_id and not m.is_read
                ),
            )
            for partner_id, msgs in groups.items()
        ]
        result.sort(key=lambda a: a.last_message.created_at, reverse=True)
        return result


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader

    async def create(self, message: Message) -> Message:
        stored = replace(message, seq=len(self._reader._messages) + 1)
        self._reader._messages.append(stored)
        return stored

    async def mark_conversation_read(
        self,
        viewer_id: str,
        partner_id: str,
        read_at: datetime,
    ) -> dict[UUID, datetime]:
        changed: dict[UUID, datetime] = {}
        for i, m in enumerate(self._reader._messages):
            if (
                m.sender_id == partner_id
                and m.recipient_id == viewer_id
                and not m.is_read
                and not m.is_deleted
                and m.created_at <= read_at
            ):
                self._reader._messages[i] = replace(m, is_read=True, read_at=read_at)
                changed[m.id] = read_at
        return changed

    async def mark_read(
        self,
        message_id: UUID,
        viewer_id: str,
        read_at: datetime,
    ) -> Message | None:
        for i, m in enumerate(self._reader._messages):
            if m.id == message_id and m.recipient_id == viewer_id and not m.is_deleted:
                updated = replace(m, is_read=True, read_at=m.read_at or read_at)
                self._reader._messages[i] = updated
                return updated
        return None


@dataclass
class FakeDirectory:
    _users: dict[str, User] = field(default_factory=dict)

    def add(self, *users: User) -> None:
        for user in users:
            self._users[user.id] = user

    async def find_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def find_users(self, user_ids: Iterable[str]) -> dict[str, User]:
        return {uid: self._users[uid] for uid in set(user_ids) if uid in self._users}

    async def assigned_patients(self, doctor_id: str) -> set[str]:
        return {
            u.id for u in self._users.values()
            if u.assigned_doctor_id == doctor_id and u.role == Role.PATIENT
        }

    async def assigned_doctor(self, patient_id: str) -> str | None:
        user = self._users.get(patient_id)
        return user.assigned_doctor_id if user else None


@dataclass
class FakeDirectoryWriter:
    _reader: FakeDirectory

    async def upsert_user(self, user: User) -> None:
        self._reader._users[user.id] = user

    async def set_role(self, user_id: str, role: str) -> bool:
        return self._update(user_id, role=role)

    async def set_assigned_doctor(self, patient_id: str, doctor_id: str | None) -> bool:
        return self._update(patient_id, assigned_doctor_id=doctor_id)

    async def deactivate(self, user_id: str) -> bool:
        return self._update(user_id, is_active=False)

    def _update(self, user_id: str, **values: object) -> bool:
        user = self._reader._users.get(user_id)
        if user is None:
            return False
        self._reader._users[user_id] = replace(user, **values)
        return True


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    directory: FakeDirectory = field(default_factory=FakeDirectory)
    directory_w: FakeDirectoryWriter | None = None
    commits: int = 0

    def __post_init__(self) -> None:
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)
        if self.directory_w is None:
            self.directory_w = FakeDirectoryWriter(self.directory)

    @property
    def _committed(self) -> bool:
        return self.commits > 0

    def factory(self):
        """Stand-in for ``open_uow``: every call yields this same UoW."""

        @asynccontextmanager
        async def _open():
            yield self

        return _open

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass


@dataclass
class RecordingNotifier:
    pushes: list[tuple[str, object]] = field(default_factory=list)
    fail: bool = False

    async def push(self, user_id: str, event) -> None:
        if self.fail:
            raise ConnectionError("bus down")
        self.pushes.append((user_id, event))

    def types_for(self, user_id: str) -> list[str]:
        return [e.type for uid, e in self.pushes if uid == user_id]


@pytest.fixture
def doctor() -> User:
    return make_user("doc-1", role=Role.DOCTOR, display_name="Dr. Grey")


@pytest.fixture
def patient(doctor) -> User:
    return make_user("pat-1", display_name="Pat One", assigned_doctor_id=doctor.id)


@pytest.fixture
def other_patient() -> User:
    return make_user("pat-2", display_name="Pat Two")


@pytest.fixture
def admin() -> User:
    return make_user("adm-1", role=Role.ADMIN, display_name="Admin")


@pytest.fixture
def uow(doctor, patient, other_patient, admin) -> FakeUoW:
    uow = FakeUoW()
    uow.directory.add(doctor, patient, other_patient, admin)
    return uow


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
