from __future__ import annotations

from dataclasses import dataclass

from care_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class User:
    """Directory record. Owned by the identity service, mirrored locally."""

    id: str
    email: str
    display_name: str
    role: str = Role.PATIENT
    is_active: bool = True
    assigned_doctor_id: str | None = None

    @property
    def name(self) -> str:
        return self.display_name or self.email
