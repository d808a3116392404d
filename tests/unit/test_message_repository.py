"""SQL shape of the message repositories, compiled for PostgreSQL."""
from __future__ import annotations

import re
import uuid

import pytest
from sqlalchemy.dialects import postgresql

from care_chat.infrastructure.db.repositories.message import (
    MessageReaderRepo,
    MessageWriterRepo,
)
from tests.conftest import T0


class _EmptyResult:
    def all(self) -> list:
        return []

    def scalars(self) -> _EmptyResult:
        return self

    def scalar_one_or_none(self) -> None:
        return None


class CapturingSession:
    def __init__(self) -> None:
        self.statements: list = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return _EmptyResult()

    def sql(self, index: int = -1) -> str:
        compiled = str(self.statements[index].compile(dialect=postgresql.dialect()))
        return re.sub(r"\s+", " ", compiled).strip()


@pytest.fixture
def session() -> CapturingSession:
    return CapturingSession()


@pytest.mark.asyncio
async def test_mark_conversation_read_is_one_guarded_update(session):
    changed = await MessageWriterRepo(session).mark_conversation_read("doc-1", "pat-1", T0)

    assert changed == {}
    assert len(session.statements) == 1
    sql = session.sql()
    assert sql.startswith("UPDATE messages SET")
    assert "messages.sender_id = " in sql
    assert "messages.recipient_id = " in sql
    assert "messages.is_read IS false" in sql
    assert "messages.is_deleted IS false" in sql
    assert "messages.created_at <= " in sql
    assert "RETURNING messages.id, messages.read_at" in sql


@pytest.mark.asyncio
async def test_mark_read_never_moves_read_at(session):
    result = await MessageWriterRepo(session).mark_read(uuid.uuid4(), "doc-1", T0)

    assert result is None
    assert len(session.statements) == 1
    sql = session.sql()
    assert sql.startswith("UPDATE messages SET")
    assert "read_at=coalesce(messages.read_at, " in sql
    assert "messages.recipient_id = " in sql
    assert "messages.is_deleted IS false" in sql
    assert "RETURNING" in sql


@pytest.mark.asyncio
async def test_aggregate_takes_latest_row_per_partner(session):
    assert await MessageReaderRepo(session).aggregate_by_partner("doc-1") == []

    sql = session.sql()
    assert "row_number() OVER (PARTITION BY CASE" in sql
    assert "ORDER BY messages.created_at DESC, messages.seq DESC" in sql
    assert "messages.is_deleted IS false" in sql
    assert "ranked.rn = " in sql
    assert sql.endswith("ORDER BY ranked.created_at DESC, ranked.seq DESC")


@pytest.mark.asyncio
async def test_list_between_is_newest_first_and_bounded(session):
    await MessageReaderRepo(session).list_between("doc-1", "pat-1", limit=20, before=T0)

    sql = session.sql()
    assert "messages.is_deleted IS false" in sql
    assert "messages.created_at < " in sql
    assert "ORDER BY messages.created_at DESC, messages.seq DESC" in sql
    assert "LIMIT " in sql
