from __future__ import annotations

from care_chat.application.dto.principal import Principal
from care_chat.application.exceptions import AuthError
from care_chat.application.ports.auth import TokenVerifier
from care_chat.application.ports.directory import Directory


async def authenticate(
    token: str | None,
    verifier: TokenVerifier,
    directory: Directory,
) -> Principal:
    """Resolve a bearer token to a principal backed by an active directory account."""
    if not token:
        raise AuthError("Authentication token required")
    principal = await verifier.verify(token)
    user = await directory.find_user(principal.user_id)
    if user is None or not user.is_active:
        raise AuthError("User not found")
    return principal.with_directory(user)
