"""
User Service - CRUD operations for the users collection.

A user document looks like:
{
    "_id": ObjectId,
    "email": "a@b.com",              # unique, lower-cased
    "name": "A",
    "password": "<bcrypt hash>",     # absent for Google-only accounts
    "isGoogleUser": False,
    "googleId": None, "picture": None,
    "kpiSettings": {"dailyTarget": 10, "level": "Just Looking", "dreamCompanies": []},
    "stats": {"totalApplications": 0, ..., "lastApplicationDate": None},
    "createdAt": datetime, "updatedAt": datetime
}
"""

import logging
from typing import Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from hirepath.core.errors import Conflict, ValidationFailed
from hirepath.db.mongodb import get_collection, COLLECTIONS
from hirepath.schemas.schemas import DEFAULT_DAILY_TARGET, KpiLevel
from hirepath.utils.timeutils import to_wire, utcnow

logger = logging.getLogger(__name__)


def default_kpi_settings() -> dict:
    return {
        "dailyTarget": DEFAULT_DAILY_TARGET,
        "level": KpiLevel.just_looking.value,
        "dreamCompanies": [],
    }


def empty_stats() -> dict:
    return {
        "totalApplications": 0,
        "applicationsThisMonth": 0,
        "applicationsThisWeek": 0,
        "applicationsToday": 0,
        "lastApplicationDate": None,
    }


def to_object_id(value) -> Optional[ObjectId]:
    """Parse an id from a URL or token; None when it isn't a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def check_auth_method(doc: dict) -> None:
    """A user must be able to log in one way or the other."""
    if doc.get("isGoogleUser"):
        if not doc.get("googleId"):
            raise ValidationFailed.for_field("googleId", "Google ID is required for Google users")
    elif not doc.get("password"):
        raise ValidationFailed.for_field("password", "Password is required for non-Google users")


def public_user(doc: dict) -> dict:
    """Public projection of a user document (never includes the password hash)."""
    kpi = {**default_kpi_settings(), **(doc.get("kpiSettings") or {})}
    stats = {**empty_stats(), **(doc.get("stats") or {})}
    stats["lastApplicationDate"] = to_wire(stats.get("lastApplicationDate"))
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name", ""),
        "email": doc["email"],
        "picture": doc.get("picture"),
        "isGoogleUser": bool(doc.get("isGoogleUser")),
        "kpiSettings": kpi,
        "stats": stats,
        "createdAt": to_wire(doc.get("createdAt")),
    }


class UserService:
    """
    Handles user account storage.
    """

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["users"])

    def _insert(self, doc: dict) -> dict:
        check_auth_method(doc)
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise Conflict("User already exists") from None
        doc["_id"] = result.inserted_id
        return doc

    def create_password_user(self, email: str, password_hash: str, name: str) -> dict:
        """
        Insert an email/password account.

        Args:
            email: already normalized (trimmed, lower-cased)
            password_hash: bcrypt hash, never the plain password
            name: display name
        """
        now = utcnow()
        doc = {
            "email": email,
            "name": name,
            "password": password_hash,
            "isGoogleUser": False,
            "kpiSettings": default_kpi_settings(),
            "stats": empty_stats(),
            "createdAt": now,
            "updatedAt": now,
        }
        return self._insert(doc)

    def create_google_user(self, email: str, name: str, google_id: str, picture: Optional[str]) -> dict:
        """Insert an account linked to a Google identity (no password)."""
        now = utcnow()
        doc = {
            "email": email,
            "name": name,
            "googleId": google_id,
            "picture": picture,
            "isGoogleUser": True,
            "kpiSettings": default_kpi_settings(),
            "stats": empty_stats(),
            "createdAt": now,
            "updatedAt": now,
        }
        return self._insert(doc)

    def get_by_id(self, user_id) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def get_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email.strip().lower()})

    def update_google_profile(self, user_id: ObjectId, name: str, google_id: str, picture: Optional[str]) -> dict:
        """Refresh the linked Google profile fields."""
        return self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": {
                "name": name,
                "googleId": google_id,
                "picture": picture,
                "isGoogleUser": True,
                "updatedAt": utcnow(),
            }},
            return_document=ReturnDocument.AFTER,
        )

    def update_kpi_settings(self, user_id: ObjectId, changes: dict) -> Optional[dict]:
        """
        Set only the supplied KPI keys.

        Args:
            changes: camelCase keys of kpiSettings, e.g. {"dailyTarget": 5}
        """
        update = {f"kpiSettings.{key}": value for key, value in changes.items()}
        update["updatedAt"] = utcnow()
        return self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )

    def set_stats(self, user_id: ObjectId, counts: dict, last_application_date=None) -> Optional[dict]:
        """Overwrite the cached counters (and optionally lastApplicationDate)."""
        update = {f"stats.{key}": value for key, value in counts.items()}
        if last_application_date is not None:
            update["stats.lastApplicationDate"] = last_application_date
        return self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
