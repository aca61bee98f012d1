"""End-to-end HTTP tests through the FastAPI app (mongomock underneath)."""

from urllib.parse import parse_qs, urlparse

from startupteam.core.config import Settings, get_settings
from tests.conftest import ROLE_DATA, STARTUP_DATA


def _register(client, email, role, password="password123", phone=None):
    payload = {"name": "Test User", "email": email, "password": password, "role": role}
    if phone:
        payload["phone"] = phone
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _bearer(tokens):
    return {"Authorization": f"Bearer {tokens['access_token']}"}


# ============================================================
# AUTH
# ============================================================

def test_register_login_me(client):
    registered = _register(client, "ada@example.com", "founder")
    assert registered["token_type"] == "bearer"
    assert registered["user"]["role"] == "founder"

    response = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "password123"})
    assert response.status_code == 200
    tokens = response.json()

    me = client.get("/api/auth/me", headers=_bearer(tokens))
    assert me.status_code == 200
    assert me.json()["email"] == "ada@example.com"
    assert "password_hash" not in me.json()


def test_duplicate_registration(client):
    _register(client, "ada@example.com", "founder")
    response = client.post("/api/auth/register", json={
        "name": "Ada", "email": "ada@example.com", "password": "password123", "role": "member"
    })
    assert response.status_code == 409
    assert response.json() == {"success": False, "error_code": "EMAIL_EXISTS", "message": "Email already registered"}


def test_wrong_password(client):
    _register(client, "ada@example.com", "founder")
    response = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_CREDENTIALS"


def test_missing_and_bad_tokens(client):
    assert client.get("/api/auth/me").status_code == 401
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_TOKEN"


def test_refresh(client):
    tokens = _register(client, "ada@example.com", "member")

    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert client.get("/api/auth/me", headers=_bearer(response.json())).status_code == 200

    # an access token is not accepted as a refresh token
    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401

    # and a refresh token does not authenticate requests
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert response.status_code == 401


def test_password_reset(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "expose_reset_token", True)
    _register(client, "ada@example.com", "member")

    response = client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    assert response.status_code == 200
    reset_token = response.json()["reset_token"]
    assert len(reset_token) == 64

    response = client.post("/api/auth/reset-password", json={"token": reset_token, "password": "brand-new-pass"})
    assert response.status_code == 200
    assert client.post(
        "/api/auth/login", json={"email": "ada@example.com", "password": "brand-new-pass"}
    ).status_code == 200

    response = client.post("/api/auth/reset-password", json={"token": reset_token, "password": "again-again"})
    assert response.status_code == 401


def test_forgot_password_never_returns_token_by_default(client, monkeypatch, db):
    defaults = Settings(_env_file=None)
    assert defaults.expose_reset_token is False
    monkeypatch.setattr(get_settings(), "expose_reset_token", defaults.expose_reset_token)
    monkeypatch.setattr(get_settings(), "debug", True)
    _register(client, "ada@example.com", "member")

    known = client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["reset_token"] is None
    assert known.json() == unknown.json()
    # a token was still issued for the real account
    assert db.users.find_one({"email": "ada@example.com"})["reset_password_token"]


def test_refresh_for_deleted_user(client, db):
    tokens = _register(client, "ada@example.com", "member")
    db.users.delete_many({})

    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_TOKEN"


# ============================================================
# OAUTH
# ============================================================

def test_oauth_round_trip(client, tokens, db):
    start = client.get("/api/auth/oauth/google", follow_redirects=False)
    assert start.status_code in (302, 307)
    state = parse_qs(urlparse(start.headers["location"]).query)["state"][0]

    callback = client.get(
        "/api/auth/oauth/google/callback",
        params={"code": "good-code", "state": state},
        follow_redirects=False,
    )
    assert callback.status_code in (302, 307)
    location = urlparse(callback.headers["location"])
    assert location.path.endswith("/pages/oauth-callback.html")
    fragment = parse_qs(location.fragment)
    assert fragment["role"] == ["member"]

    user_id = tokens.verify_access_token(fragment["access_token"][0])["sub"]
    assert db.users.count_documents({}) == 1
    assert str(db.users.find_one({})["_id"]) == user_id


def test_oauth_callback_requires_matching_state(client, db):
    response = client.get(
        "/api/auth/oauth/google/callback",
        params={"code": "good-code", "state": "forged"},
        follow_redirects=False,
    )
    assert response.status_code == 502
    assert response.json()["error_code"] == "AUTH_PROVIDER_ERROR"
    assert db.users.count_documents({}) == 0


def test_unknown_oauth_provider(client):
    response = client.get("/api/auth/oauth/myspace", follow_redirects=False)
    assert response.status_code == 404


# ============================================================
# MARKETPLACE FLOW
# ============================================================

def test_founder_and_member_flow(client, notifier):
    founder = _bearer(_register(client, "founder@example.com", "founder", phone="+14155550100"))
    member = _bearer(_register(client, "member@example.com", "member", phone="+919876543210"))

    # role gates
    assert client.get("/api/founder/dashboard", headers=member).status_code == 403
    assert client.get("/api/member/dashboard", headers=founder).status_code == 403

    response = client.post("/api/founder/startup", json=STARTUP_DATA, headers=founder)
    assert response.status_code == 201, response.text
    startup_id = response.json()["id"]
    assert client.post("/api/founder/startup", json=STARTUP_DATA, headers=founder).status_code == 409

    response = client.post("/api/founder/roles", json=ROLE_DATA, headers=founder)
    assert response.status_code == 201, response.text
    role_id = response.json()["id"]

    response = client.put("/api/member/profile", headers=member, json={
        "current_role": "Engineer", "years_experience": 0, "skills": ["Python", " "], "bio": "Backend dev",
        "completion_status": False,
    })
    assert response.status_code == 200
    assert response.json()["completion_status"] is True
    assert response.json()["skills"] == ["Python"]

    listing = client.get("/api/member/startups", params={"industry": "AI/ML"}, headers=member).json()
    assert listing["total"] == 1
    details = client.get(f"/api/member/startups/{startup_id}", headers=member).json()
    assert [r["id"] for r in details["roles"]] == [role_id]

    assert client.post(f"/api/member/startups/{startup_id}/save", headers=member).status_code == 201
    assert client.post(f"/api/member/startups/{startup_id}/save", headers=member).status_code == 409
    assert len(client.get("/api/member/startups/saved", headers=member).json()) == 1

    response = client.post("/api/member/applications", json={"role_id": role_id}, headers=member)
    assert response.status_code == 201, response.text
    application_id = response.json()["id"]
    response = client.post("/api/member/applications", json={"role_id": role_id}, headers=member)
    assert response.status_code == 409
    assert response.json()["error_code"] == "DUPLICATE_APPLICATION"

    received = client.get("/api/founder/applications", headers=founder).json()
    assert [a["id"] for a in received] == [application_id]
    assert received[0]["role_title"] == ROLE_DATA["title"]
    assert received[0]["applicant_email"] == "member@example.com"
    assert received[0]["applicant_skills"] == ["Python"]
    assert received[0]["applicant_current_role"] == "Engineer"

    response = client.put(f"/api/founder/applications/{application_id}/accept", json={"notes": "Welcome"}, headers=founder)
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"
    notifier.send_application_accepted.assert_called_once()

    response = client.put(f"/api/founder/applications/{application_id}/reject", json={}, headers=founder)
    assert response.status_code == 409
    assert response.json()["error_code"] == "INVALID_TRANSITION"

    response = client.delete(f"/api/member/applications/{application_id}", headers=member)
    assert response.status_code == 409

    mine = client.get("/api/member/applications", headers=member).json()
    assert mine[0]["status"] == "accepted"
    assert mine[0]["startup_name"] == STARTUP_DATA["name"]

    dashboard = client.get("/api/founder/dashboard", headers=founder).json()
    assert dashboard["applications_by_status"]["accepted"] == 1
    assert dashboard["view_count"] == 1


def test_apply_to_unknown_role(client):
    member = _bearer(_register(client, "member@example.com", "member"))
    response = client.post("/api/member/applications", json={"role_id": "64b0000000000000000000ff"}, headers=member)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ROLE_NOT_FOUND"


def test_request_validation_still_uses_fastapi_format(client):
    response = client.post("/api/auth/register", json={"email": "not-an-email"})
    assert response.status_code == 422


# ============================================================
# UPLOADS
# ============================================================

def test_upload_avatar(client, image_store, db):
    member = _bearer(_register(client, "member@example.com", "member"))

    response = client.post(
        "/api/upload/avatar",
        files={"file": ("me.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 16, "image/png")},
        headers=member,
    )
    assert response.status_code == 200, response.text
    assert response.json()["url"] == image_store.replace.return_value.url
    assert db.users.find_one({})["avatar"] == image_store.replace.return_value.url


def test_upload_rejects_non_images(client, image_store):
    member = _bearer(_register(client, "member@example.com", "member"))
    response = client.post(
        "/api/upload/avatar",
        files={"file": ("cv.pdf", b"%PDF-1.4", "application/pdf")},
        headers=member,
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"
    image_store.replace.assert_not_called()


def test_logo_upload_is_founder_only(client):
    member = _bearer(_register(client, "member@example.com", "member"))
    response = client.post(
        "/api/upload/startup-logo",
        files={"file": ("logo.png", b"\x89PNG\r\n\x1a\n", "image/png")},
        headers=member,
    )
    assert response.status_code == 403


def test_health(client, monkeypatch):
    monkeypatch.setattr("startupteam.main.test_mongo_connection", lambda: True)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["mongodb"] == "connected"
