"""
Startup Service - startups, their roles, bookmarks and dashboards.

Ownership:
- a founder owns at most one startup (unique founder_id)
- a role belongs to exactly one startup; only that startup's founder
  may edit or delete it
- members bookmark startups, once per (user, startup)
"""

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from startupteam.core.exceptions import AlreadySaved, Forbidden, NotFound, StartupAlreadyExists
from startupteam.db.mongodb import get_collection, get_mongo_db, serialize_doc, serialize_docs, to_object_id
from startupteam.services.notification_service import WhatsAppNotifier
from startupteam.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

STARTUP_FIELDS = {
    "name", "industry", "stage", "team_size", "website", "location",
    "tagline", "description", "linkedin", "is_active"
}
ROLE_FIELDS = {"title", "experience_level", "employment_type", "description", "salary_range", "skills", "status"}
APPLICATION_STATUSES = ("pending", "interview", "accepted", "rejected")

# Cap on WhatsApp alerts sent for one new role
ROLE_MATCH_ALERT_LIMIT = 50


class StartupService:

    def __init__(
        self,
        db: Database = None,
        notifier: Optional[WhatsAppNotifier] = None,
        schedule: Optional[Callable] = None,
    ):
        self.db = db if db is not None else get_mongo_db()
        self.notifier = notifier
        # Runs notification work after the response (BackgroundTasks.add_task)
        self.schedule = schedule
        self.startups = get_collection("startups", self.db)
        self.roles = get_collection("roles", self.db)
        self.applications = get_collection("applications", self.db)
        self.saved = get_collection("saved_startups", self.db)
        self.users = get_collection("users", self.db)
        self.member_profiles = get_collection("member_profiles", self.db)
        self.profiles = ProfileService(self.db)

    # ============================================================
    # STARTUPS (founder)
    # ============================================================

    def create_startup(self, founder_id, data: Dict[str, Any]) -> dict:
        now = datetime.utcnow()
        doc = {
            **{k: v for k, v in data.items() if k in STARTUP_FIELDS},
            "founder_id": to_object_id(founder_id, "User"),
            "logo": None,
            "is_active": True,
            "view_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.startups.insert_one(doc)
        except DuplicateKeyError:
            raise StartupAlreadyExists("You already have a startup. Update it instead.")
        doc["_id"] = result.inserted_id
        logger.info("Startup created id=%s founder=%s", doc["_id"], founder_id)
        return serialize_doc(doc)

    def _founder_startup(self, founder_id) -> dict:
        doc = self.startups.find_one({"founder_id": to_object_id(founder_id, "User")})
        if not doc:
            raise NotFound("Startup not found. Please create a startup first.")
        return doc

    def get_startup_for_founder(self, founder_id) -> dict:
        return serialize_doc(self._founder_startup(founder_id))

    def update_startup(self, startup_id, founder_id, changes: Dict[str, Any]) -> dict:
        startup = self.startups.find_one({"_id": to_object_id(startup_id, "Startup")})
        if not startup:
            raise NotFound("Startup not found")
        if startup["founder_id"] != to_object_id(founder_id, "User"):
            raise Forbidden("You can only update your own startup")

        changes = {k: v for k, v in changes.items() if k in STARTUP_FIELDS}
        updated = self.startups.find_one_and_update(
            {"_id": startup["_id"]},
            {"$set": {**changes, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_doc(updated)

    def set_logo(self, founder_id, logo_url: str) -> dict:
        startup = self._founder_startup(founder_id)
        self.startups.update_one(
            {"_id": startup["_id"]},
            {"$set": {"logo": logo_url, "updated_at": datetime.utcnow()}}
        )
        startup["logo"] = logo_url
        return serialize_doc(startup)

    # ============================================================
    # ROLES (founder)
    # ============================================================

    def create_role(self, founder_id, data: Dict[str, Any]) -> dict:
        startup = self._founder_startup(founder_id)
        now = datetime.utcnow()
        doc = {
            **{k: v for k, v in data.items() if k in ROLE_FIELDS},
            "startup_id": startup["_id"],
            "status": "open",
            "posted_date": now,
            "applications_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        doc.setdefault("skills", [])
        result = self.roles.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Role created id=%s startup=%s", doc["_id"], startup["_id"])

        if self.notifier is not None and doc["skills"]:
            if self.schedule is not None:
                self.schedule(self._alert_matching_members, startup, doc)
            else:
                self._alert_matching_members(startup, doc)
        return serialize_doc(doc)

    def list_roles_for_founder(self, founder_id, status: Optional[str] = None) -> List[dict]:
        startup = self.startups.find_one({"founder_id": to_object_id(founder_id, "User")})
        if not startup:
            return []
        query = {"startup_id": startup["_id"]}
        if status:
            query["status"] = status
        return serialize_docs(self.roles.find(query).sort("posted_date", DESCENDING))

    def _owned_role(self, role_id, founder_id) -> dict:
        role = self.roles.find_one({"_id": to_object_id(role_id, "Role")})
        if not role:
            raise NotFound("Role not found")
        startup = self.startups.find_one({"_id": role["startup_id"]})
        if not startup or startup["founder_id"] != to_object_id(founder_id, "User"):
            raise Forbidden("You can only manage roles of your own startup")
        return role

    def update_role(self, role_id, founder_id, changes: Dict[str, Any]) -> dict:
        role = self._owned_role(role_id, founder_id)
        changes = {k: v for k, v in changes.items() if k in ROLE_FIELDS}
        updated = self.roles.find_one_and_update(
            {"_id": role["_id"]},
            {"$set": {**changes, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_doc(updated)

    def delete_role(self, role_id, founder_id) -> None:
        """Delete a role together with its applications."""
        role = self._owned_role(role_id, founder_id)
        removed = self.applications.delete_many({"role_id": role["_id"]}).deleted_count
        self.roles.delete_one({"_id": role["_id"]})
        logger.info("Role deleted id=%s (%d applications removed)", role["_id"], removed)

    def _alert_matching_members(self, startup: dict, role: dict) -> None:
        """WhatsApp alert to members whose skills overlap the role's. Best-effort."""
        if self.notifier is None or not role.get("skills"):
            return
        try:
            profiles = self.member_profiles.find(
                {"skills": {"$in": role["skills"]}}, {"user_id": 1}
            ).limit(ROLE_MATCH_ALERT_LIMIT)
            user_ids = [p["user_id"] for p in profiles]
            for user in self.users.find({"_id": {"$in": user_ids}, "role": "member"}, {"phone": 1}):
                if user.get("phone"):
                    self.notifier.send_role_match(user["phone"], startup["name"], role["title"])
        except Exception as e:
            logger.error("Role match alerts failed for role %s: %s", role["_id"], e)

    # ============================================================
    # EXPLORE / BOOKMARKS (member)
    # ============================================================

    def explore_startups(
        self,
        industry: Optional[str] = None,
        stage: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[dict], int]:
        """Active startups, newest first, with simple filters."""
        query: Dict[str, Any] = {"is_active": True}
        if industry:
            query["industry"] = industry
        if stage:
            query["stage"] = stage
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"tagline": pattern}, {"description": pattern}]

        total = self.startups.count_documents(query)
        cursor = (
            self.startups.find(query)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * page_size)
            .limit(page_size)
        )
        return serialize_docs(cursor), total

    def get_startup_details(self, startup_id, user_id=None) -> dict:
        """Startup with its open roles; counts as one view."""
        startup = self.startups.find_one_and_update(
            {"_id": to_object_id(startup_id, "Startup"), "is_active": True},
            {"$inc": {"view_count": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if not startup:
            raise NotFound("Startup not found")

        roles = self.roles.find({"startup_id": startup["_id"], "status": "open"}).sort("posted_date", DESCENDING)
        is_saved = False
        if user_id is not None:
            is_saved = self.saved.count_documents(
                {"user_id": to_object_id(user_id, "User"), "startup_id": startup["_id"]}
            ) > 0

        return {
            "startup": serialize_doc(startup),
            "roles": serialize_docs(roles),
            "is_saved": is_saved,
        }

    def save_startup(self, user_id, startup_id) -> None:
        startup = self.startups.find_one({"_id": to_object_id(startup_id, "Startup")}, {"_id": 1})
        if not startup:
            raise NotFound("Startup not found")
        try:
            self.saved.insert_one({
                "user_id": to_object_id(user_id, "User"),
                "startup_id": startup["_id"],
                "saved_date": datetime.utcnow(),
            })
        except DuplicateKeyError:
            raise AlreadySaved("Startup already saved")

    def unsave_startup(self, user_id, startup_id) -> None:
        result = self.saved.delete_one({
            "user_id": to_object_id(user_id, "User"),
            "startup_id": to_object_id(startup_id, "Startup"),
        })
        if result.deleted_count == 0:
            raise NotFound("Saved startup not found")

    def list_saved(self, user_id) -> List[dict]:
        """Bookmarked startups, most recently saved first."""
        bookmarks = list(
            self.saved.find({"user_id": to_object_id(user_id, "User")}).sort("saved_date", DESCENDING)
        )
        ids = [b["startup_id"] for b in bookmarks]
        by_id = {s["_id"]: s for s in self.startups.find({"_id": {"$in": ids}})}
        return [serialize_doc(by_id[i]) for i in ids if i in by_id]

    # ============================================================
    # DASHBOARDS
    # ============================================================

    def _status_counts(self, query: dict) -> Dict[str, int]:
        return {status: self.applications.count_documents({**query, "status": status})
                for status in APPLICATION_STATUSES}

    def founder_dashboard(self, founder_id) -> dict:
        complete = self.profiles.is_complete(founder_id, "founder")
        startup = self.startups.find_one({"founder_id": to_object_id(founder_id, "User")})
        if not startup:
            return {"has_startup": False, "profile_complete": complete}

        by_status = self._status_counts({"startup_id": startup["_id"]})
        return {
            "has_startup": True,
            "startup_name": startup["name"],
            "view_count": startup.get("view_count", 0),
            "total_roles": self.roles.count_documents({"startup_id": startup["_id"]}),
            "open_roles": self.roles.count_documents({"startup_id": startup["_id"], "status": "open"}),
            "total_applications": sum(by_status.values()),
            "applications_by_status": by_status,
            "profile_complete": complete,
        }

    def member_dashboard(self, member_id) -> dict:
        uid = to_object_id(member_id, "User")
        by_status = self._status_counts({"member_id": uid})
        return {
            "total_applications": sum(by_status.values()),
            "applications_by_status": by_status,
            "saved_startups": self.saved.count_documents({"user_id": uid}),
            "profile_complete": self.profiles.is_complete(member_id, "member"),
        }
