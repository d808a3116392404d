from __future__ import annotations

from care_chat.domain.entities.user import User
from care_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        email=model.email,
        display_name=model.display_name,
        role=model.role,
        is_active=model.is_active,
        assigned_doctor_id=model.assigned_doctor_id,
    )


def entity_to_values(entity: User) -> dict[str, object]:
    return {
        "id": entity.id,
        "email": entity.email,
        "display_name": entity.display_name,
        "role": entity.role,
        "is_active": entity.is_active,
        "assigned_doctor_id": entity.assigned_doctor_id,
    }
