from __future__ import annotations

import asyncio
import logging

import jwt
from jwt import PyJWKClient

from care_chat.application.dto.principal import Principal
from care_chat.application.exceptions import AuthError

logger = logging.getLogger(__name__)


class JWKSVerifier:
    """Verify JWTs using a remote JWKS endpoint."""

    def __init__(self, jwks_url: str) -> None:
        self._jwks_url = jwks_url
        self._jwk_client = PyJWKClient(jwks_url)

    async def verify(self, token: str) -> Principal:
        try:
            # PyJWKClient fetches keys over blocking HTTP.
            signing_key = await asyncio.to_thread(
                self._jwk_client.get_signing_key_from_jwt, token,
            )
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256", "ES256"],
                options={"require": ["sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("Token expired") from exc
        except jwt.PyJWKClientError as exc:
            logger.warning("JWKS lookup failed for %s: %s", self._jwks_url, exc)
            raise AuthError("Invalid token") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("Invalid token") from exc
        return Principal.from_claims(payload)
