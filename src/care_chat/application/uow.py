from __future__ import annotations

from typing import Protocol

from care_chat.application.ports.directory import Directory, DirectoryWriter
from care_chat.application.repositories.message import MessageReader, MessageWriter


class UnitOfWork(Protocol):
    messages: MessageReader
    messages_w: MessageWriter
    directory: Directory
    directory_w: DirectoryWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
