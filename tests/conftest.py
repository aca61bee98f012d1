"""
Shared fixtures: an in-memory MongoDB (mongomock) with the real indexes,
services built on top of it, and a TestClient wired to the same database.
"""

from unittest.mock import MagicMock

import mongomock
import pytest
from fastapi.testclient import TestClient

from startupteam.core.config import Settings
from startupteam.core.exceptions import AuthProviderError
from startupteam.core.tokens import TokenService, get_token_service
from startupteam.db.mongodb import get_db, init_mongo_indexes
from startupteam.services.application_service import ApplicationService
from startupteam.services.identity_service import IdentityService, public_user
from startupteam.services.notification_service import WhatsAppNotifier, get_notifier
from startupteam.services.oauth_service import ExternalIdentity
from startupteam.services.profile_service import ProfileService
from startupteam.services.startup_service import StartupService
from startupteam.services.upload_service import ImageStore, UploadedImage, get_image_store


STARTUP_DATA = {
    "name": "Acme Robotics",
    "industry": "AI/ML",
    "stage": "Seed",
    "team_size": "1-5",
    "tagline": "Robots for small warehouses",
    "description": "We build affordable picking robots.",
}

ROLE_DATA = {
    "title": "Backend Engineer",
    "experience_level": "Mid-Level (3-5 Years)",
    "employment_type": "Full-Time",
    "description": "Own our order routing services.",
    "skills": ["Python", "MongoDB"],
}


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        jwt_secret_key="test-access-secret",
        jwt_refresh_secret_key="test-refresh-secret",
        debug=True,
    )


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    database = client["startupteam_test"]
    init_mongo_indexes(database)
    return database


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def notifier():
    return MagicMock(spec=WhatsAppNotifier)


@pytest.fixture
def identity(db, settings):
    return IdentityService(db, settings)


@pytest.fixture
def profiles(db):
    return ProfileService(db)


@pytest.fixture
def startups(db, notifier):
    return StartupService(db, notifier)


@pytest.fixture
def applications(db, notifier):
    return ApplicationService(db, notifier)


@pytest.fixture
def make_user(identity):
    """Create a user (and its profile) without going through bcrypt."""
    counter = {"n": 0}

    def _make(role="member", **fields):
        counter["n"] += 1
        data = {
            "name": f"User {counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "role": role,
            "phone": None,
            **fields,
        }
        return public_user(identity.create_user(data))

    return _make


@pytest.fixture
def founder(make_user):
    return make_user("founder", email="founder@example.com", phone="+1 415 555 0100")


@pytest.fixture
def member(make_user):
    return make_user("member", email="member@example.com", phone="+91 98765 43210")


@pytest.fixture
def startup(startups, founder):
    return startups.create_startup(founder["id"], dict(STARTUP_DATA))


@pytest.fixture
def role(startups, founder, startup):
    return startups.create_role(founder["id"], dict(ROLE_DATA))


# ============================================================
# OAUTH
# ============================================================

class FakeProvider:
    """Provider that accepts one code and asserts a fixed identity."""

    def __init__(self, name, identity, code="good-code"):
        self.name = name
        self.identity = identity
        self.code = code

    def authorization_url(self, state):
        return f"https://accounts.example.com/{self.name}/authorize?state={state}"

    def exchange_assertion(self, code):
        if code != self.code:
            raise AuthProviderError(f"{self.name} authentication failed")
        return self.identity


@pytest.fixture
def google_identity():
    return ExternalIdentity(
        provider="google",
        provider_id="google-123",
        email="oauth.user@example.com",
        name="OAuth User",
        avatar="https://example.com/avatar.png",
    )


@pytest.fixture
def google_provider(google_identity):
    return FakeProvider("google", google_identity)


# ============================================================
# API
# ============================================================

@pytest.fixture
def image_store():
    store = MagicMock(spec=ImageStore)
    store.replace.return_value = UploadedImage(
        url="https://res.cloudinary.com/demo/image/upload/v1/startupteam/avatars/new.png",
        public_id="startupteam/avatars/new",
    )
    return store


@pytest.fixture
def client(db, tokens, notifier, image_store, google_provider):
    from startupteam.api.deps import get_oauth_providers
    from startupteam.main import app

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_token_service] = lambda: tokens
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_image_store] = lambda: image_store
    app.dependency_overrides[get_oauth_providers] = lambda: [google_provider]

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_header(tokens):
    def _header(user):
        return {"Authorization": f"Bearer {tokens.issue_access_token(user['id'])}"}
    return _header
