"""Seed development data: directory users, one doctor/patient assignment, a short chat."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from care_chat.config import settings
from care_chat.domain.entities.message import Message
from care_chat.domain.entities.user import User
from care_chat.domain.value_objects.enums import MessageType, Role
from care_chat.infrastructure.db.base import Base
from care_chat.infrastructure.db.models import MessageModel, UserModel  # noqa: F401
from care_chat.infrastructure.db.session import engine, open_uow
from care_chat.log import configure_logging

logger = logging.getLogger(__name__)

USERS = [
    User(id="doc-1", email="house@example.com", display_name="Dr. House", role=Role.DOCTOR),
    User(id="pat-1", email="alice@example.com", display_name="Alice", role=Role.PATIENT,
         assigned_doctor_id="doc-1"),
    User(id="pat-2", email="bob@example.com", display_name="Bob", role=Role.PATIENT),
    User(id="adm-1", email="admin@example.com", display_name="Admin", role=Role.ADMIN),
]

CHAT = [
    ("pat-1", "doc-1", "Hello doctor, the pain came back last night."),
    ("doc-1", "pat-1", "Sorry to hear that. How would you rate it, 1 to 10?"),
    ("pat-1", "doc-1", "About a 6."),
]


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    by_id = {u.id: u for u in USERS}
    async with open_uow() as uow:
        for user in USERS:
            await uow.directory_w.upsert_user(user)

        start = datetime.now(timezone.utc) - timedelta(minutes=len(CHAT))
        for i, (sender_id, recipient_id, content) in enumerate(CHAT):
            sender = by_id[sender_id]
            await uow.messages_w.create(
                Message(
                    id=uuid.uuid4(),
                    sender_id=sender_id,
                    recipient_id=recipient_id,
                    sender_role=str(sender.role),
                    sender_name=sender.name,
                    content=content,
                    message_type=MessageType.TEXT.value,
                    created_at=start + timedelta(minutes=i),
                )
            )
        await uow.commit()
    logger.info("Seeded %d users and %d messages", len(USERS), len(CHAT))


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
