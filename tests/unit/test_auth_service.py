from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from care_chat.application.exceptions import AuthError
from care_chat.domain.value_objects.enums import Role
from care_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from care_chat.services import auth_service
from tests.conftest import make_user

SECRET = "unit-test-secret-0123456789abcdef0123"


@pytest.fixture
def verifier() -> HS256Verifier:
    return HS256Verifier(SECRET, "HS256")


def _token(sub: str, **claims) -> str:
    return jwt.encode({"sub": sub, **claims}, SECRET, algorithm="HS256")


@pytest.mark.asyncio
async def test_verifier_reads_claims(verifier):
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    principal = await verifier.verify(
        _token("doc-1", email="d@x.org", role="doctor", name="Dr. Grey", exp=exp)
    )

    assert principal.user_id == "doc-1"
    assert principal.role == Role.DOCTOR
    assert principal.name == "Dr. Grey"
    assert principal.expires_at == exp.replace(microsecond=0)


@pytest.mark.asyncio
async def test_verifier_defaults_unknown_role_to_patient(verifier):
    principal = await verifier.verify(_token("u-1", role="superuser"))
    assert principal.role == Role.PATIENT


@pytest.mark.asyncio
async def test_verifier_rejects_expired(verifier):
    token = _token("u-1", exp=datetime.now(timezone.utc) - timedelta(minutes=1))
    with pytest.raises(AuthError, match="expired"):
        await verifier.verify(token)


@pytest.mark.asyncio
async def test_verifier_rejects_bad_signature(verifier):
    token = jwt.encode({"sub": "u-1"}, "other-secret-0123456789abcdef0123456789", algorithm="HS256")
    with pytest.raises(AuthError):
        await verifier.verify(token)


@pytest.mark.asyncio
async def test_verifier_requires_sub(verifier):
    token = jwt.encode({"email": "x@y"}, SECRET, algorithm="HS256")
    with pytest.raises(AuthError):
        await verifier.verify(token)


@pytest.mark.asyncio
async def test_authenticate_uses_directory_role(uow, verifier, doctor):
    # the token claims patient, the directory says doctor
    principal = await auth_service.authenticate(
        _token(doctor.id, role="patient"), verifier, uow.directory,
    )

    assert principal.role == Role.DOCTOR
    assert principal.display_name == "Dr. Grey"


@pytest.mark.asyncio
async def test_authenticate_requires_token(uow, verifier):
    with pytest.raises(AuthError):
        await auth_service.authenticate(None, verifier, uow.directory)


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", ["ghost", "inactive"])
async def test_authenticate_rejects_unknown_or_inactive(uow, verifier, user_id):
    uow.directory.add(make_user("inactive", is_active=False))

    with pytest.raises(AuthError, match="User not found"):
        await auth_service.authenticate(_token(user_id), verifier, uow.directory)
