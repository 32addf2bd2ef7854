import uuid

import pytest
from jose import jwt

from internhub.auth.service import authenticate, decode_token, issue_access_token
from internhub.common.errors import AuthenticationError
from internhub.features.users.models import UserRole


def test_authenticate_resolves_active_user(db, intern):
    identity = authenticate(db, issue_access_token(intern.id))

    assert identity.id == intern.id
    assert identity.role == "INTERN"
    assert identity.is_admin is False


def test_admin_identity(db, admin):
    assert authenticate(db, issue_access_token(admin.id)).is_admin is True


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_authenticate_rejects_bad_tokens(db, token):
    with pytest.raises(AuthenticationError):
        authenticate(db, token)


def test_authenticate_rejects_unknown_and_inactive(db, make_user):
    with pytest.raises(AuthenticationError):
        authenticate(db, issue_access_token(uuid.uuid4()))

    dormant = make_user(UserRole.INTERN, is_active=False)
    with pytest.raises(AuthenticationError):
        authenticate(db, issue_access_token(dormant.id))


def test_authenticate_rejects_foreign_signature(db, intern):
    forged = jwt.encode({"sub": str(intern.id)}, "another-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        authenticate(db, forged)


def test_expired_token(db, intern):
    token = issue_access_token(intern.id, ttl_seconds=-10)
    with pytest.raises(AuthenticationError):
        decode_token(token)


def test_missing_subject(db):
    token = jwt.encode({"scope": "none"}, "test-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        authenticate(db, token)


def test_user_repository_normalizes_email(db):
    from internhub.features.users.repository import user_repository

    user = user_repository.create_user(db, "  Dev@Example.COM ", " Dev ", UserRole.ADMIN)
    db.commit()

    found = user_repository.get_by_email(db, "dev@example.com")
    assert found.id == user.id
    assert found.name == "Dev"
    assert authenticate(db, issue_access_token(user.id)).is_admin is True


def test_revoking_access_blocks_authentication_and_is_audited(db, intern, admin):
    from internhub.features.audit.models import AuditLog
    from internhub.features.users.service import user_service

    token = issue_access_token(intern.id)
    revoked = user_service.set_access(db, intern.id, admin.id, is_active=False)
    assert revoked.is_active is False
    with pytest.raises(AuthenticationError):
        authenticate(db, token)

    user_service.set_access(db, intern.id, admin.id, is_active=True)
    assert authenticate(db, token).id == intern.id

    actions = [row.action for row in db.query(AuditLog).filter(AuditLog.actor_id == admin.id)]
    assert sorted(actions) == ["ACCESS_RESTORED", "ACCESS_REVOKED"]
