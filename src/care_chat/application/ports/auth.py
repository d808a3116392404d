from __future__ import annotations

from typing import Protocol

from care_chat.application.dto.principal import Principal


class TokenVerifier(Protocol):
    """Identity gate. Raises AuthError for malformed, forged or expired tokens."""

    async def verify(self, token: str) -> Principal: ...
