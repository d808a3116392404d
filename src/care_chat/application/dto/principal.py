from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from care_chat.domain.entities.user import User
from care_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: str
    email: str = ""
    role: Role = Role.PATIENT
    display_name: str = ""
    expires_at: datetime | None = None

    @classmethod
    def from_claims(cls, payload: dict[str, Any]) -> Principal:
        role_raw = payload.get("role", Role.PATIENT)
        role = Role(role_raw) if role_raw in Role.__members__.values() else Role.PATIENT
        exp = payload.get("exp")
        return cls(
            user_id=str(payload["sub"]),
            email=payload.get("email", ""),
            role=role,
            display_name=payload.get("name", ""),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
        )

    def with_directory(self, user: User) -> Principal:
        """The directory is authoritative for role and display name."""
        return replace(
            self,
            email=user.email or self.email,
            role=Role(user.role),
            display_name=user.display_name,
        )

    @property
    def name(self) -> str:
        return self.display_name or self.email or self.user_id

    @property
    def address(self) -> str:
        """Push address shared by all of the user's live connections."""
        return self.user_id

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at
