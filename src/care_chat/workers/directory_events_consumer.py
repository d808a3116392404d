"""Keeps the local directory mirror in sync with identity-service events (Redis Streams)."""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

import redis.asyncio as aioredis

from care_chat.application.uow import UnitOfWork
from care_chat.config import settings
from care_chat.domain.entities.user import User
from care_chat.domain.value_objects.enums import Role
from care_chat.infrastructure.bus.redis_streams import RedisStreamConsumer
from care_chat.infrastructure.db.session import open_uow
from care_chat.log import configure_logging

logger = logging.getLogger(__name__)


def _parse_bool(raw: Any, default: bool = True) -> bool:
    if raw is None or raw == "":
        return default
    return str(raw).lower() in ("1", "true", "yes")


def _parse_role(raw: Any) -> str:
    return Role(raw).value if raw in Role.__members__.values() else Role.PATIENT.value


async def handle_event(event_type: str, fields: dict[str, Any], uow: UnitOfWork) -> bool:
    """Apply one directory event. Returns False for events this service ignores."""
    if event_type == "user.upserted":
        user = User(
            id=str(fields["user_id"]),
            email=fields.get("email", ""),
            display_name=fields.get("display_name", ""),
            role=_parse_role(fields.get("role")),
            is_active=_parse_bool(fields.get("is_active")),
            assigned_doctor_id=fields.get("assigned_doctor_id") or None,
        )
        await uow.directory_w.upsert_user(user)
    elif event_type == "user.role_changed":
        await uow.directory_w.set_role(str(fields["user_id"]), _parse_role(fields.get("role")))
    elif event_type == "user.deactivated":
        await uow.directory_w.deactivate(str(fields["user_id"]))
    elif event_type == "patient.assigned":
        await uow.directory_w.set_assigned_doctor(
            str(fields["patient_id"]), str(fields["doctor_id"]),
        )
    elif event_type == "patient.unassigned":
        await uow.directory_w.set_assigned_doctor(str(fields["patient_id"]), None)
    else:
        logger.debug("Ignoring unknown event: %s", event_type)
        return False

    await uow.commit()
    logger.info("Applied %s %s", event_type, fields.get("user_id") or fields.get("patient_id"))
    return True


async def _on_stream_event(event_type: str, fields: dict[str, Any]) -> None:
    async with open_uow() as uow:
        await handle_event(event_type, fields, uow)


async def run_consumer() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    consumer_name = f"consumer-{uuid.uuid4().hex[:8]}"

    consumer = RedisStreamConsumer(
        redis=redis,
        stream=settings.DIRECTORY_EVENTS_STREAM,
        group=settings.DIRECTORY_EVENTS_GROUP,
        consumer=consumer_name,
        callback=_on_stream_event,
    )
    await consumer.start()
    logger.info("Directory events consumer started (%s)", consumer_name)

    try:
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        pass
    finally:
        await consumer.stop()
        await redis.aclose()


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(run_consumer())


if __name__ == "__main__":
    main()
