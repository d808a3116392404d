from __future__ import annotations

from care_chat.application.dto.principal import Principal
from care_chat.application.exceptions import ForbiddenError
from care_chat.application.ports.directory import Directory
from care_chat.domain.entities.user import User
from care_chat.domain.value_objects.enums import Role


async def visible_partner_ids(
    principal: Principal,
    partner_ids: set[str],
    directory: Directory,
) -> set[str]:
    """Partners whose conversations the principal may see in listings."""
    if principal.role != Role.DOCTOR:
        return partner_ids
    return partner_ids & await directory.assigned_patients(principal.user_id)


async def assert_can_message(
    principal: Principal,
    recipient: User,
    directory: Directory,
) -> None:
    """Raise unless a doctor/patient pair is an actual assignment.

    Pairs that are not doctor/patient (anything involving an admin, or two
    users of the same role) are not restricted here.
    """
    if principal.role == Role.DOCTOR and recipient.role == Role.PATIENT:
        patients = await directory.assigned_patients(principal.user_id)
        if recipient.id not in patients:
            raise ForbiddenError("Patient is not assigned to you")
    elif principal.role == Role.PATIENT and recipient.role == Role.DOCTOR:
        doctor_id = await directory.assigned_doctor(principal.user_id)
        if doctor_id != recipient.id:
            raise ForbiddenError("Doctor is not assigned to you")
