"""
Identity Service - the users collection and everything that mutates it.

Invariants (backed by unique indexes, see db/mongodb.py):
- at most one user per email
- at most one user per (auth_provider, provider_id)
- every user has exactly one profile, matching its role

Password reset:
- request_password_reset() hands back the RAW token once (to be sent
  out-of-band); only hash_token(raw) is stored
- reset_password() hashes what the caller presents and compares digests
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from startupteam.core.auth import hash_password, verify_password
from startupteam.core.config import Settings, get_settings
from startupteam.core.exceptions import (
    EmailAlreadyRegistered, InvalidCredentials, InvalidToken, NotFound
)
from startupteam.core.tokens import generate_reset_token, hash_token
from startupteam.db.mongodb import get_collection, get_mongo_db, serialize_doc, to_object_id
from startupteam.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

# Never leave the service layer
PRIVATE_USER_FIELDS = ("password_hash", "reset_password_token", "reset_password_expire", "provider_id")

EDITABLE_USER_FIELDS = {"name", "phone", "avatar"}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def public_user(doc: dict) -> Optional[dict]:
    """Serialize a user document without credentials."""
    if doc is None:
        return None
    data = serialize_doc(doc)
    for field in PRIVATE_USER_FIELDS:
        data.pop(field, None)
    return data


class IdentityService:
    """
    Local accounts, lookups and the create-user-with-profile unit shared
    with the OAuth linker.
    """

    def __init__(self, db: Database = None, settings: Settings = None):
        self.db = db if db is not None else get_mongo_db()
        self.settings = settings or get_settings()
        self.users = get_collection("users", self.db)
        self.profiles = ProfileService(self.db)

    # --------------------------------------------------------
    # Creation
    # --------------------------------------------------------

    def create_user(self, fields: Dict[str, Any]) -> dict:
        """
        Insert a user and its default profile as one unit.

        If the profile insert fails the user is removed again, so no user
        is ever left without a profile. Storage errors propagate; a duplicate
        email surfaces as DuplicateKeyError from the users insert.
        """
        now = datetime.utcnow()
        doc = {
            "auth_provider": "local",
            "email_verified": False,
            "avatar": None,
            "last_login": None,
            **fields,
            "email": normalize_email(fields["email"]),
            "created_at": now,
            "updated_at": now,
        }
        result = self.users.insert_one(doc)
        user_id = result.inserted_id

        try:
            self.profiles.create_default(user_id, doc["role"])
        except Exception:
            self.users.delete_one({"_id": user_id})
            logger.error("Profile creation failed, rolled back user %s", user_id)
            raise

        doc["_id"] = user_id
        return doc

    def register(self, name: str, email: str, password: str, role: str, phone: str = None) -> dict:
        """Create a local-credential account."""
        fields = {
            "name": name.strip(),
            "email": email,
            "password_hash": hash_password(password),
            "role": role,
            "phone": phone,
            "auth_provider": "local",
        }
        try:
            doc = self.create_user(fields)
        except DuplicateKeyError:
            raise EmailAlreadyRegistered("Email already registered")

        logger.info("User registered user_id=%s role=%s", doc["_id"], role)
        return public_user(doc)

    # --------------------------------------------------------
    # Login
    # --------------------------------------------------------

    def authenticate(self, email: str, password: str) -> dict:
        """
        Verify email + password. OAuth-only accounts have no password and
        fail like a wrong password does.
        """
        doc = self.users.find_one({"email": normalize_email(email)})
        if not doc or not doc.get("password_hash"):
            raise InvalidCredentials("Invalid email or password")
        if not verify_password(password, doc["password_hash"]):
            raise InvalidCredentials("Invalid email or password")

        now = datetime.utcnow()
        self.users.update_one({"_id": doc["_id"]}, {"$set": {"last_login": now}})
        doc["last_login"] = now
        return public_user(doc)

    # --------------------------------------------------------
    # Lookups
    # --------------------------------------------------------

    def get_by_id(self, user_id) -> dict:
        doc = self.users.find_one({"_id": to_object_id(user_id, "User")})
        if not doc:
            raise NotFound("User not found")
        return public_user(doc)

    def find_by_provider(self, provider: str, provider_id: str) -> Optional[dict]:
        """Raw document (credentials included) for internal reconciliation."""
        return self.users.find_one({"auth_provider": provider, "provider_id": provider_id})

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.users.find_one({"email": normalize_email(email)})

    # --------------------------------------------------------
    # Updates
    # --------------------------------------------------------

    def save(self, user_id, changes: Dict[str, Any]) -> None:
        """Persist arbitrary user fields (internal use)."""
        self.users.update_one(
            {"_id": to_object_id(user_id, "User")},
            {"$set": {**changes, "updated_at": datetime.utcnow()}}
        )

    def update_user(self, user_id, changes: Dict[str, Any]) -> dict:
        """Profile edits a user may make on their own account."""
        changes = {k: v for k, v in changes.items() if k in EDITABLE_USER_FIELDS}
        if changes:
            self.save(user_id, changes)
        return self.get_by_id(user_id)

    # --------------------------------------------------------
    # Password reset
    # --------------------------------------------------------

    def request_password_reset(self, email: str) -> Optional[str]:
        """
        Issue a reset token for the account with this email.

        Returns the raw token, or None when no such account exists (the
        HTTP layer answers identically in both cases).
        """
        doc = self.find_by_email(email)
        if not doc:
            logger.info("Password reset requested for unknown email")
            return None

        raw_token = generate_reset_token()
        expire = datetime.utcnow() + timedelta(minutes=self.settings.reset_token_expire_minutes)
        self.save(doc["_id"], {
            "reset_password_token": hash_token(raw_token),
            "reset_password_expire": expire,
        })
        logger.info("Password reset token issued user_id=%s", doc["_id"])
        return raw_token

    def reset_password(self, raw_token: str, new_password: str) -> dict:
        """Consume a reset token (single use) and set a new password."""
        doc = self.users.find_one_and_update(
            {
                "reset_password_token": hash_token(raw_token),
                "reset_password_expire": {"$gt": datetime.utcnow()},
            },
            {
                "$set": {"password_hash": hash_password(new_password), "updated_at": datetime.utcnow()},
                "$unset": {"reset_password_token": "", "reset_password_expire": ""},
            }
        )
        if not doc:
            raise InvalidToken("Invalid or expired reset token")

        logger.info("Password reset completed user_id=%s", doc["_id"])
        return public_user(doc)
