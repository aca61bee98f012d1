"""
Profile Service - founder/member profiles and the completion rule.

Every user owns exactly one profile, in the collection matching its role.
completion_status is DERIVED: it is recomputed from the required fields on
every write and any caller-supplied value is ignored.

Required fields:
- founder: experience, bio, skills, linkedin
- member:  current_role, years_experience, skills, bio
"""

import logging
from datetime import datetime
from typing import Any, Dict

from pymongo.database import Database

from startupteam.core.exceptions import NotFound, ValidationFailed
from startupteam.db.mongodb import get_collection, get_mongo_db, serialize_doc, to_object_id

logger = logging.getLogger(__name__)

FOUNDER_REQUIRED_FIELDS = ("experience", "bio", "skills", "linkedin")
MEMBER_REQUIRED_FIELDS = ("current_role", "years_experience", "skills", "bio")

REQUIRED_FIELDS = {
    "founder": FOUNDER_REQUIRED_FIELDS,
    "member": MEMBER_REQUIRED_FIELDS,
}

PROFILE_COLLECTIONS = {
    "founder": "founder_profiles",
    "member": "member_profiles",
}

EDITABLE_FIELDS = {
    "founder": {"experience", "bio", "skills", "linkedin", "portfolio"},
    "member": {"current_role", "company", "years_experience", "linkedin", "github", "skills", "bio", "portfolio"},
}

# Optimistic write attempts before giving up on a hot profile
MAX_WRITE_ATTEMPTS = 5


# ============================================================
# COMPLETION RULE (pure)
# ============================================================

def is_filled(value: Any) -> bool:
    """
    A field is filled when it holds real content.
    Strings must be non-blank, lists non-empty; any number counts (0 too).
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        return len(value.strip()) > 0
    if isinstance(value, (list, tuple, set)):
        return len(value) > 0
    return True


def compute_completion_status(role: str, profile: Dict[str, Any]) -> bool:
    """AND over the role's required fields."""
    return all(is_filled(profile.get(field)) for field in _required_fields(role))


def _required_fields(role: str):
    try:
        return REQUIRED_FIELDS[role]
    except KeyError:
        raise ValidationFailed(f"Unknown profile type '{role}'")


# ============================================================
# PROFILE STORAGE
# ============================================================

class ProfileService:
    """
    Reads and writes founder_profiles / member_profiles.
    """

    def __init__(self, db: Database = None):
        self.db = db if db is not None else get_mongo_db()

    def _collection(self, role: str):
        _required_fields(role)
        return get_collection(PROFILE_COLLECTIONS[role], self.db)

    def create_default(self, user_id, role: str) -> str:
        """
        Insert the empty profile for a new user.
        Raises DuplicateKeyError if the user already has one (unique user_id).
        """
        now = datetime.utcnow()
        doc = {
            "user_id": to_object_id(user_id, "User"),
            "skills": [],
            "created_at": now,
            "updated_at": now,
        }
        doc["completion_status"] = compute_completion_status(role, doc)
        result = self._collection(role).insert_one(doc)
        return str(result.inserted_id)

    def delete_for_user(self, user_id, role: str) -> bool:
        result = self._collection(role).delete_one({"user_id": to_object_id(user_id, "User")})
        return result.deleted_count > 0

    def get_profile(self, user_id, role: str) -> dict:
        doc = self._collection(role).find_one({"user_id": to_object_id(user_id, "User")})
        if not doc:
            raise NotFound("Profile not found")
        return serialize_doc(doc)

    def is_complete(self, user_id, role: str) -> bool:
        doc = self._collection(role).find_one(
            {"user_id": to_object_id(user_id, "User")},
            {"completion_status": 1}
        )
        return bool(doc and doc.get("completion_status"))

    def update_profile(self, user_id, role: str, changes: Dict[str, Any]) -> dict:
        """
        Apply field changes and recompute completion_status in the same write.

        Unknown keys (completion_status, user_id, ...) are dropped.
        The write is conditional on the updated_at we read, so a concurrent
        save cannot leave a flag computed from stale fields.
        """
        collection = self._collection(role)
        allowed = EDITABLE_FIELDS[role]
        changes = {k: v for k, v in changes.items() if k in allowed}
        uid = to_object_id(user_id, "User")

        for _ in range(MAX_WRITE_ATTEMPTS):
            current = collection.find_one({"user_id": uid})
            if not current:
                raise NotFound("Profile not found")

            merged = {**current, **changes}
            now = datetime.utcnow()
            merged["completion_status"] = compute_completion_status(role, merged)
            merged["updated_at"] = now

            result = collection.update_one(
                {"_id": current["_id"], "updated_at": current.get("updated_at")},
                {"$set": {**changes, "completion_status": merged["completion_status"], "updated_at": now}}
            )
            if result.matched_count:
                logger.info(
                    "Profile updated user_id=%s role=%s complete=%s",
                    user_id, role, merged["completion_status"]
                )
                return serialize_doc(merged)

        raise ValidationFailed("Profile is being modified concurrently, please retry")
