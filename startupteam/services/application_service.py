"""
Application Service - the lifecycle of a member's application to a role.

State machine:

    pending ──> interview ──> accepted
       │            └──────> rejected
       ├──────────────────> accepted
       └──────────────────> rejected

accepted / rejected are terminal. Cancelling is a member-only delete that
is allowed while the application is still pending.

Concurrency:
- one application per (member, role) is the unique index on applications;
  a duplicate insert is reported as DuplicateApplication
- status changes are conditional updates on the status we validated, so two
  racing founders cannot both move the same application
- roles.applications_count is recomputed from the applications collection
  after every insert/delete, so it cannot drift from the real set

Notifications go through `schedule` (BackgroundTasks.add_task in the API),
so the WhatsApp call runs after the response. Without it they run inline.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from startupteam.core.exceptions import (
    DuplicateApplication, Forbidden, InvalidTransition, NotFound, RoleNotFound
)
from startupteam.db.mongodb import get_collection, get_mongo_db, serialize_doc, to_object_id
from startupteam.services.notification_service import WhatsAppNotifier

logger = logging.getLogger(__name__)

PENDING = "pending"
INTERVIEW = "interview"
ACCEPTED = "accepted"
REJECTED = "rejected"

TRANSITIONS: Dict[str, set] = {
    PENDING: {INTERVIEW, ACCEPTED, REJECTED},
    INTERVIEW: {ACCEPTED, REJECTED},
    ACCEPTED: set(),
    REJECTED: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


class ApplicationService:

    def __init__(
        self,
        db: Database = None,
        notifier: Optional[WhatsAppNotifier] = None,
        schedule: Optional[Callable] = None,
    ):
        self.db = db if db is not None else get_mongo_db()
        self.notifier = notifier
        self.schedule = schedule
        self.applications = get_collection("applications", self.db)
        self.roles = get_collection("roles", self.db)
        self.startups = get_collection("startups", self.db)
        self.users = get_collection("users", self.db)
        self.member_profiles = get_collection("member_profiles", self.db)

    # --------------------------------------------------------
    # Member side
    # --------------------------------------------------------

    def apply(self, member_id, role_id, cover_letter: Optional[str] = None) -> dict:
        """
        Create a pending application.

        Raises RoleNotFound if the role is missing or not open, and
        DuplicateApplication if this member already applied to it.
        """
        role = self.roles.find_one({"_id": to_object_id(role_id, "Role")})
        if not role or role.get("status") != "open":
            raise RoleNotFound("Role not found or no longer accepting applications")

        now = datetime.utcnow()
        doc = {
            "member_id": to_object_id(member_id, "User"),
            "startup_id": role["startup_id"],
            "role_id": role["_id"],
            "status": PENDING,
            "applied_date": now,
            "updated_date": now,
            "cover_letter": (cover_letter or "").strip() or None,
            "notes": None,
        }
        try:
            result = self.applications.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateApplication("You have already applied to this role")
        doc["_id"] = result.inserted_id

        self._sync_applications_count(role["_id"])
        logger.info("Application created id=%s member=%s role=%s", doc["_id"], member_id, role_id)
        return serialize_doc(doc)

    def cancel(self, application_id, member_id) -> None:
        """Withdraw a pending application (owning member only)."""
        application = self._get(application_id)
        if application["member_id"] != to_object_id(member_id, "User"):
            raise Forbidden("You can only cancel your own applications")
        if application["status"] != PENDING:
            raise InvalidTransition(
                f"Cannot cancel an application that is '{application['status']}'",
                details={"status": application["status"]},
            )

        result = self.applications.delete_one({"_id": application["_id"], "status": PENDING})
        if result.deleted_count == 0:
            raise InvalidTransition("Application was updated by the founder, it can no longer be cancelled")

        self._sync_applications_count(application["role_id"])
        logger.info("Application cancelled id=%s", application_id)

    def list_for_member(self, member_id, status: Optional[str] = None) -> List[dict]:
        query = {"member_id": to_object_id(member_id, "User")}
        if status:
            query["status"] = status
        return self._list(query)

    # --------------------------------------------------------
    # Founder side
    # --------------------------------------------------------

    def move_to_interview(self, application_id, founder_id, notes: Optional[str] = None) -> dict:
        return self._transition(application_id, founder_id, INTERVIEW, notes)

    def accept(self, application_id, founder_id, notes: Optional[str] = None) -> dict:
        application = self._transition(application_id, founder_id, ACCEPTED, notes)
        if self.notifier is not None:
            if self.schedule is not None:
                self.schedule(self._notify_accepted, application)
            else:
                self._notify_accepted(application)
        return application

    def reject(self, application_id, founder_id, notes: Optional[str] = None) -> dict:
        return self._transition(application_id, founder_id, REJECTED, notes)

    def list_for_founder(self, founder_id, role_id=None, status: Optional[str] = None) -> List[dict]:
        startup = self.startups.find_one({"founder_id": to_object_id(founder_id, "User")})
        if not startup:
            return []
        query = {"startup_id": startup["_id"]}
        if role_id:
            query["role_id"] = to_object_id(role_id, "Role")
        if status:
            query["status"] = status
        return self._attach_applicants(self._list(query))

    # --------------------------------------------------------
    # Internals
    # --------------------------------------------------------

    def _get(self, application_id) -> dict:
        application = self.applications.find_one({"_id": to_object_id(application_id, "Application")})
        if not application:
            raise NotFound("Application not found")
        return application

    def _transition(self, application_id, founder_id, target: str, notes: Optional[str]) -> dict:
        application = self._get(application_id)

        startup = self.startups.find_one({"_id": application["startup_id"]})
        if not startup or startup["founder_id"] != to_object_id(founder_id, "User"):
            raise Forbidden("Only the founder of this startup can manage its applications")

        current = application["status"]
        if not can_transition(current, target):
            raise InvalidTransition(
                f"Cannot move application from '{current}' to '{target}'",
                details={"status": current, "target": target},
            )

        changes = {"status": target, "updated_date": datetime.utcnow()}
        if notes is not None:
            changes["notes"] = notes.strip()

        updated = self.applications.find_one_and_update(
            {"_id": application["_id"], "status": current},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise InvalidTransition("Application status changed concurrently, reload and retry")

        logger.info("Application %s moved %s -> %s", application_id, current, target)
        return serialize_doc(updated)

    def _sync_applications_count(self, role_id) -> None:
        count = self.applications.count_documents({"role_id": role_id})
        self.roles.update_one({"_id": role_id}, {"$set": {"applications_count": count}})

    def _notify_accepted(self, application: dict) -> None:
        """Best-effort WhatsApp message; never affects the accepted status."""
        if self.notifier is None:
            return
        try:
            member = self.users.find_one({"_id": to_object_id(application["member_id"])})
            startup = self.startups.find_one({"_id": to_object_id(application["startup_id"])})
            founder = self.users.find_one({"_id": startup["founder_id"]}) if startup else None
            if not member or not startup:
                return
            founder_contact = (founder or {}).get("email", "via StartupTeam")
            self.notifier.send_application_accepted(member.get("phone"), startup["name"], founder_contact)
        except Exception as e:
            logger.error("Acceptance notification failed for application %s: %s", application["id"], e)

    def _list(self, query: dict) -> List[dict]:
        """Newest applications first, with role title and startup name attached."""
        docs = list(self.applications.find(query).sort("applied_date", DESCENDING))

        role_ids = list({d["role_id"] for d in docs})
        startup_ids = list({d["startup_id"] for d in docs})
        role_titles = {
            r["_id"]: r.get("title") for r in self.roles.find({"_id": {"$in": role_ids}}, {"title": 1})
        }
        startup_names = {
            s["_id"]: s.get("name") for s in self.startups.find({"_id": {"$in": startup_ids}}, {"name": 1})
        }

        results = []
        for doc in docs:
            item = serialize_doc(doc)
            item["role_title"] = role_titles.get(doc["role_id"])
            item["startup_name"] = startup_names.get(doc["startup_id"])
            results.append(item)
        return results

    def _attach_applicants(self, items: List[dict]) -> List[dict]:
        """Add the applicant's contact and profile summary for the founder's view."""
        member_ids = list({to_object_id(item["member_id"]) for item in items})
        users = {
            u["_id"]: u
            for u in self.users.find({"_id": {"$in": member_ids}}, {"name": 1, "email": 1, "avatar": 1})
        }
        profiles = {
            p["user_id"]: p
            for p in self.member_profiles.find(
                {"user_id": {"$in": member_ids}},
                {"user_id": 1, "skills": 1, "current_role": 1, "years_experience": 1},
            )
        }

        for item in items:
            member_id = to_object_id(item["member_id"])
            user = users.get(member_id, {})
            profile = profiles.get(member_id, {})
            item["applicant_name"] = user.get("name")
            item["applicant_email"] = user.get("email")
            item["applicant_avatar"] = user.get("avatar")
            item["applicant_skills"] = profile.get("skills") or []
            item["applicant_current_role"] = profile.get("current_role")
            item["applicant_years_experience"] = profile.get("years_experience")
        return items
