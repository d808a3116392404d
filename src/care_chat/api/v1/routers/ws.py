from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError
from starlette.websockets import WebSocketState

from care_chat.api.deps import (
    ConnectionManagerDep,
    NotifierDep,
    UoWFactory,
    UoWFactoryDep,
    VerifierDep,
)
from care_chat.application.dto.events import (
    ErrorEvent,
    ErrorPayload,
    MessagePayload,
    MessageSentEvent,
    PongEvent,
    encode_event,
)
from care_chat.application.dto.message import SendMessageDTO
from care_chat.application.dto.principal import Principal
from care_chat.application.exceptions import AppError, AuthError
from care_chat.application.ports.auth import TokenVerifier
from care_chat.application.ports.clock import SystemClock
from care_chat.application.ports.push import PushNotifier
from care_chat.config import settings
from care_chat.infrastructure.ws.protocol import (
    MarkReadIn,
    PingIn,
    SendMessageIn,
    TypingIn,
    classify_invalid,
    parse_client_event,
)
from care_chat.services import auth_service, delivery_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

WS_AUTH_FAILED = 4001
WS_INTERNAL_ERROR = 1011
SUBPROTOCOL = "care-chat"

_clock = SystemClock()


def _strip_bearer(value: str | None) -> str | None:
    if not value:
        return None
    value = value.strip()
    for prefix in ("bearer ", "bearer."):
        if value.lower().startswith(prefix):
            value = value[len(prefix):].strip()
            break
    return value or None


def extract_token(websocket: WebSocket) -> str | None:
    """First match wins: subprotocol auth field, ``token`` query param, Authorization header."""
    for proto in websocket.scope.get("subprotocols") or []:
        if proto.lower().startswith(("bearer ", "bearer.")):
            token = _strip_bearer(proto)
            if token:
                return token

    token = _strip_bearer(websocket.query_params.get("token"))
    if token:
        return token

    auth_header = websocket.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return _strip_bearer(auth_header)
    return None


async def _close(ws: WebSocket, code: int, reason: str) -> None:
    if ws.application_state != WebSocketState.DISCONNECTED:
        await ws.close(code=code, reason=reason)


async def _send_local(ws: WebSocket, event) -> None:
    await ws.send_text(encode_event(event))


async def _send_error(ws: WebSocket, code: str, message: str = "") -> None:
    await _send_local(ws, ErrorEvent(data=ErrorPayload(code=code, message=message)))


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    uow_factory: UoWFactoryDep,
    verifier: VerifierDep,
    manager: ConnectionManagerDep,
    notifier: NotifierDep,
) -> None:
    try:
        principal = await _authenticate(extract_token(websocket), verifier, uow_factory)
    except AppError as exc:
        logger.info("WS auth failed: %s", exc.detail)
        await _close(websocket, WS_AUTH_FAILED, "Authentication failed")
        return
    except Exception:
        logger.exception("WS auth error")
        await _close(websocket, WS_INTERNAL_ERROR, "Internal error")
        return

    address = principal.address
    offered = websocket.scope.get("subprotocols") or []
    await manager.connect(
        websocket, address, subprotocol=SUBPROTOCOL if SUBPROTOCOL in offered else None,
    )
    logger.info("User connected: %s (%s)", principal.name, address)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{address}",
    )
    expiry_task = (
        asyncio.create_task(_expire_session(websocket, principal), name=f"ws-expiry-{address}")
        if principal.expires_at is not None
        else None
    )
    try:
        await _read_loop(websocket, principal, uow_factory, notifier)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", address)
    finally:
        heartbeat_task.cancel()
        if expiry_task is not None:
            expiry_task.cancel()
        manager.disconnect(websocket, address)
        logger.info("User disconnected: %s (%s)", principal.name, address)


async def _authenticate(
    token: str | None,
    verifier: TokenVerifier,
    uow_factory: UoWFactory,
) -> Principal:
    async with uow_factory() as uow:
        principal = await auth_service.authenticate(token, verifier, uow.directory)
    if principal.is_expired(_clock.now()):
        raise AuthError("Token expired")
    return principal


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await _send_local(ws, PongEvent())
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped", exc_info=True)


async def _expire_session(ws: WebSocket, principal: Principal) -> None:
    assert principal.expires_at is not None
    delay = (principal.expires_at - _clock.now()).total_seconds()
    try:
        await asyncio.sleep(max(delay, 0))
        logger.info("Credential expired for %s, closing", principal.address)
        await _close(ws, WS_AUTH_FAILED, "Token expired")
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Expiry close failed", exc_info=True)


async def _read_loop(
    ws: WebSocket,
    principal: Principal,
    uow_factory: UoWFactory,
    notifier: PushNotifier,
) -> None:
    while True:
        raw = await ws.receive_text()
        if principal.is_expired(_clock.now()):
            await _close(ws, WS_AUTH_FAILED, "Token expired")
            return

        try:
            event = parse_client_event(raw)
        except PydanticValidationError:
            await _send_error(ws, classify_invalid(raw))
            continue

        if isinstance(event, SendMessageIn):
            await _handle_send(ws, principal, event, uow_factory, notifier)

        elif isinstance(event, MarkReadIn):
            await _handle_mark_read(ws, principal, event, uow_factory, notifier)

        elif isinstance(event, TypingIn):
            await delivery_service.relay_typing(
                principal, event.data.recipient_id, event.data.is_typing, notifier,
            )

        elif isinstance(event, PingIn):
            await _send_local(ws, PongEvent())


async def _handle_send(
    ws: WebSocket,
    principal: Principal,
    event: SendMessageIn,
    uow_factory: UoWFactory,
    notifier: PushNotifier,
) -> None:
    dto = SendMessageDTO(
        recipient_id=event.data.recipient_id,
        content=event.data.content,
        message_type=event.data.message_type,
    )
    try:
        async with uow_factory() as uow:
            msg = await delivery_service.send_and_deliver(principal, dto, uow, notifier)
    except AppError as exc:
        await _send_error(ws, exc.code, exc.detail)
        return
    except Exception:
        logger.exception("send_message failed for %s", principal.address)
        await _send_error(ws, "internal", "Failed to send message")
        return

    await _send_local(ws, MessageSentEvent(data=MessagePayload.from_entity(msg)))


async def _handle_mark_read(
    ws: WebSocket,
    principal: Principal,
    event: MarkReadIn,
    uow_factory: UoWFactory,
    notifier: PushNotifier,
) -> None:
    try:
        async with uow_factory() as uow:
            await delivery_service.mark_read_and_notify(
                principal, event.data.message_id, uow, notifier,
            )
    except AppError as exc:
        await _send_error(ws, exc.code, exc.detail)
    except Exception:
        logger.exception("mark_read failed for %s", principal.address)
        await _send_error(ws, "internal", "Failed to mark message as read")
