"""FastAPI dependency injection helpers."""
from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Annotated, AsyncIterator, Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import HTTPConnection

from care_chat.application.dto.principal import Principal
from care_chat.application.ports.auth import TokenVerifier
from care_chat.application.ports.push import PushNotifier
from care_chat.application.uow import UnitOfWork
from care_chat.config import settings
from care_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from care_chat.infrastructure.auth.jwks_verifier import JWKSVerifier
from care_chat.infrastructure.db.session import AsyncSessionLocal, open_uow
from care_chat.infrastructure.db.uow import SqlAlchemyUoW
from care_chat.infrastructure.ws.manager import ConnectionManager
from care_chat.services import auth_service

_bearer_scheme = HTTPBearer(auto_error=False)

UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


def get_uow_factory() -> UoWFactory:
    """Per-event UoWs for the live channel, where one request spans many operations."""
    return open_uow


UoWFactoryDep = Annotated[UoWFactory, Depends(get_uow_factory)]


def _get_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        assert settings.JWKS_URL, "JWKS_URL must be set when JWT_VERIFY_MODE=jwks"
        return JWKSVerifier(settings.JWKS_URL)
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = _get_verifier()
    return _verifier


VerifierDep = Annotated[TokenVerifier, Depends(get_verifier)]


def get_notifier(conn: HTTPConnection) -> PushNotifier:
    return conn.app.state.notifier


NotifierDep = Annotated[PushNotifier, Depends(get_notifier)]


def get_connection_manager(conn: HTTPConnection) -> ConnectionManager:
    return conn.app.state.connections


ConnectionManagerDep = Annotated[ConnectionManager, Depends(get_connection_manager)]


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    verifier: VerifierDep,
    uow: UoWDep,
) -> Principal:
    token = credentials.credentials if credentials else None
    return await auth_service.authenticate(token, verifier, uow.directory)


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
