from __future__ import annotations

from datetime import timedelta

import pytest

from care_chat.services import conversation_service
from tests.conftest import T0, make_message, make_user, principal_for


@pytest.mark.asyncio
async def test_list_conversations_groups_by_partner(uow, doctor, patient, admin):
    uow.messages._messages.extend([
        make_message(patient.id, doctor.id, content="p1", created_at=T0),
        make_message(doctor.id, patient.id, content="p2", created_at=T0 + timedelta(minutes=1)),
        make_message(admin.id, doctor.id, content="a1", created_at=T0 + timedelta(minutes=5)),
    ])

    summaries = await conversation_service.list_conversations(principal_for(patient), uow)

    assert len(summaries) == 1
    assert summaries[0].partner_id == doctor.id
    assert summaries[0].partner == doctor
    assert summaries[0].last_message.content == "p2"
    assert summaries[0].unread_count == 1


@pytest.mark.asyncio
async def test_list_conversations_newest_first(uow, admin, patient, other_patient):
    uow.messages._messages.extend([
        make_message(patient.id, admin.id, created_at=T0),
        make_message(other_patient.id, admin.id, created_at=T0 + timedelta(hours=1)),
    ])

    summaries = await conversation_service.list_conversations(principal_for(admin), uow)

    assert [s.partner_id for s in summaries] == [other_patient.id, patient.id]


@pytest.mark.asyncio
async def test_unread_count_only_counts_partner_to_viewer(uow, doctor, patient):
    uow.messages._messages.extend([
        make_message(patient.id, doctor.id),
        make_message(patient.id, doctor.id, is_read=True),
        make_message(patient.id, doctor.id, is_deleted=True),
        make_message(doctor.id, patient.id),
    ])

    summaries = await conversation_service.list_conversations(principal_for(doctor), uow)

    assert summaries[0].unread_count == 1


@pytest.mark.asyncio
async def test_doctor_sees_only_assigned_patients(uow, doctor, patient, other_patient):
    uow.messages._messages.extend([
        make_message(patient.id, doctor.id, created_at=T0),
        make_message(other_patient.id, doctor.id, created_at=T0 + timedelta(minutes=1)),
    ])

    summaries = await conversation_service.list_conversations(principal_for(doctor), uow)

    assert [s.partner_id for s in summaries] == [patient.id]


@pytest.mark.asyncio
async def test_unassigned_patient_still_sees_doctor(uow, doctor, other_patient):
    uow.messages._messages.append(make_message(other_patient.id, doctor.id))

    summaries = await conversation_service.list_conversations(principal_for(other_patient), uow)

    assert [s.partner_id for s in summaries] == [doctor.id]


@pytest.mark.asyncio
async def test_vanished_partner_has_no_profile(uow, patient):
    uow.messages._messages.append(make_message("deleted-user", patient.id))

    summaries = await conversation_service.list_conversations(principal_for(patient), uow)

    assert summaries[0].partner_id == "deleted-user"
    assert summaries[0].partner is None


@pytest.mark.asyncio
async def test_unread_total_respects_doctor_filter(uow, doctor, patient, other_patient):
    uow.messages._messages.extend([
        make_message(patient.id, doctor.id),
        make_message(patient.id, doctor.id),
        make_message(other_patient.id, doctor.id),
    ])

    assert await conversation_service.unread_total(principal_for(doctor), uow) == 2


@pytest.mark.asyncio
async def test_unread_total_zero_without_messages(uow, patient):
    assert await conversation_service.unread_total(principal_for(patient), uow) == 0


@pytest.mark.asyncio
async def test_contacts_for_doctor_are_active_assigned_patients(uow, doctor, patient):
    uow.directory.add(
        make_user("pat-3", display_name="Alice", assigned_doctor_id=doctor.id),
        make_user("pat-4", assigned_doctor_id=doctor.id, is_active=False),
    )

    contacts = await conversation_service.list_contacts(principal_for(doctor), uow)

    assert [u.id for u in contacts] == ["pat-3", patient.id]


@pytest.mark.asyncio
async def test_contacts_for_patient_is_assigned_doctor(uow, doctor, patient, other_patient):
    assert await conversation_service.list_contacts(principal_for(patient), uow) == [doctor]
    assert await conversation_service.list_contacts(principal_for(other_patient), uow) == []


@pytest.mark.asyncio
async def test_contacts_for_admin_is_empty(uow, admin):
    assert await conversation_service.list_contacts(principal_for(admin), uow) == []
