from __future__ import annotations

from care_chat.application.dto.base import CamelModel
from care_chat.domain.entities.user import User


class UserResponse(CamelModel):
    id: str
    email: str
    display_name: str
    role: str

    @classmethod
    def from_entity(cls, user: User) -> UserResponse:
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=user.role,
        )
