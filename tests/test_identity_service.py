"""Registration, login and password reset against mongomock."""

from datetime import datetime, timedelta

import pytest

from startupteam.core.exceptions import EmailAlreadyRegistered, InvalidCredentials, InvalidToken, NotFound
from startupteam.core.tokens import hash_token


def test_register_creates_user_and_profile(identity, db):
    user = identity.register("Ada Founder", "  Ada@Example.com ", "s3cret-pass", "founder")

    assert user["email"] == "ada@example.com"
    assert user["role"] == "founder"
    assert user["auth_provider"] == "local"
    assert user["email_verified"] is False
    assert "password_hash" not in user

    stored = db.users.find_one({"email": "ada@example.com"})
    assert stored["password_hash"] != "s3cret-pass"
    assert db.founder_profiles.count_documents({"user_id": stored["_id"]}) == 1
    assert db.member_profiles.count_documents({"user_id": stored["_id"]}) == 0


def test_register_duplicate_email(identity, db):
    identity.register("Ada", "ada@example.com", "s3cret-pass", "founder")
    with pytest.raises(EmailAlreadyRegistered) as exc:
        identity.register("Ada Again", "ADA@example.com", "other-pass", "member")

    assert exc.value.error_code == "EMAIL_EXISTS"
    assert db.users.count_documents({}) == 1
    assert db.member_profiles.count_documents({}) == 0


def test_failed_profile_insert_removes_user(identity, db, monkeypatch):
    def boom(user_id, role):
        raise RuntimeError("profiles unavailable")

    monkeypatch.setattr(identity.profiles, "create_default", boom)
    with pytest.raises(RuntimeError):
        identity.register("Ada", "ada@example.com", "s3cret-pass", "member")

    assert db.users.count_documents({}) == 0


def test_authenticate(identity, db):
    identity.register("Bob", "bob@example.com", "correct-horse", "member")

    user = identity.authenticate("BOB@example.com", "correct-horse")
    assert user["email"] == "bob@example.com"
    assert user["last_login"] is not None
    assert db.users.find_one({"email": "bob@example.com"})["last_login"] is not None


@pytest.mark.parametrize("email,password", [
    ("bob@example.com", "wrong-password"),
    ("nobody@example.com", "correct-horse"),
])
def test_authenticate_rejects_bad_credentials(identity, email, password):
    identity.register("Bob", "bob@example.com", "correct-horse", "member")
    with pytest.raises(InvalidCredentials):
        identity.authenticate(email, password)


def test_oauth_only_account_cannot_use_password_login(identity, make_user):
    make_user("member", email="oauth@example.com", auth_provider="google", provider_id="g-1")
    with pytest.raises(InvalidCredentials):
        identity.authenticate("oauth@example.com", "anything-at-all")


def test_get_by_id(identity, member):
    assert identity.get_by_id(member["id"])["email"] == member["email"]
    with pytest.raises(NotFound):
        identity.get_by_id("not-an-object-id")


def test_update_user_only_touches_editable_fields(identity, member):
    updated = identity.update_user(member["id"], {"name": "Renamed", "role": "founder", "email": "x@y.z"})
    assert updated["name"] == "Renamed"
    assert updated["role"] == "member"
    assert updated["email"] == member["email"]


def test_password_reset_flow(identity, db):
    identity.register("Cleo", "cleo@example.com", "old-password", "member")

    raw = identity.request_password_reset("cleo@example.com")
    assert len(raw) == 64

    stored = db.users.find_one({"email": "cleo@example.com"})
    assert stored["reset_password_token"] == hash_token(raw)
    assert stored["reset_password_token"] != raw

    identity.reset_password(raw, "new-password")
    assert identity.authenticate("cleo@example.com", "new-password")["email"] == "cleo@example.com"
    with pytest.raises(InvalidCredentials):
        identity.authenticate("cleo@example.com", "old-password")

    stored = db.users.find_one({"email": "cleo@example.com"})
    assert "reset_password_token" not in stored
    assert "reset_password_expire" not in stored


def test_reset_token_is_single_use(identity):
    identity.register("Cleo", "cleo@example.com", "old-password", "member")
    raw = identity.request_password_reset("cleo@example.com")

    identity.reset_password(raw, "new-password")
    with pytest.raises(InvalidToken):
        identity.reset_password(raw, "another-password")


def test_expired_reset_token(identity, db):
    identity.register("Cleo", "cleo@example.com", "old-password", "member")
    raw = identity.request_password_reset("cleo@example.com")
    db.users.update_one(
        {"email": "cleo@example.com"},
        {"$set": {"reset_password_expire": datetime.utcnow() - timedelta(minutes=1)}}
    )

    with pytest.raises(InvalidToken):
        identity.reset_password(raw, "new-password")


def test_reset_request_for_unknown_email(identity):
    assert identity.request_password_reset("ghost@example.com") is None


def test_unknown_reset_token(identity):
    with pytest.raises(InvalidToken):
        identity.reset_password("0" * 64, "new-password")
