"""
Job Application Service - CRUD for the job_applications collection.

Every query is scoped to the owning user. A record that exists but belongs to
someone else is reported exactly like a missing one (NotFound), so callers
can't probe for other users' ids.
"""

import logging
import re
from datetime import timedelta
from typing import List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from hirepath.core.errors import NotFound, ValidationFailed
from hirepath.db.mongodb import get_collection, COLLECTIONS
from hirepath.schemas.schemas import (
    ApplicationCreate, ApplicationStatus, ApplicationUpdate,
    DeadlineFilter, ExtensionApplicationCreate
)
from hirepath.services.stats_service import StatsService
from hirepath.services.user_service import to_object_id
from hirepath.utils.timeutils import to_wire, utcnow

logger = logging.getLogger(__name__)

UPCOMING_WINDOW = timedelta(days=7)
DEFAULT_SORT = "-applicationDate"

# Fields a list may be sorted by
SORTABLE_FIELDS = {
    "applicationDate", "submissionDeadline", "companyName", "roleTitle",
    "status", "isDreamCompany", "createdAt", "updatedAt",
}

# Optional fields removed from the document when cleared
CLEARABLE_FIELDS = {"submissionDeadline", "jobPostUrl", "notes"}


def serialize_application(doc: dict) -> dict:
    """Convert a stored application to its JSON shape (string ids, UTC timestamps)."""
    out = {k: v for k, v in doc.items() if k not in ("_id", "user")}
    out["_id"] = str(doc["_id"])
    out["user"] = str(doc["user"])
    for key in ("applicationDate", "submissionDeadline", "createdAt", "updatedAt"):
        if key in out:
            out[key] = to_wire(out[key])
    return out


def parse_sort(sort: Optional[str]) -> List[Tuple[str, int]]:
    """
    Parse a Mongoose-style sort string ("-applicationDate companyName").

    Raises ValidationFailed for fields outside SORTABLE_FIELDS.
    """
    keys = [k for k in re.split(r"[\s,]+", (sort or DEFAULT_SORT).strip()) if k]
    if not keys:
        keys = [DEFAULT_SORT]

    spec = []
    for key in keys:
        direction = DESCENDING if key.startswith("-") else ASCENDING
        field = key.lstrip("+-")
        if field not in SORTABLE_FIELDS:
            raise ValidationFailed.for_field("sort", f"Cannot sort by '{field}'")
        spec.append((field, direction))
    return spec


def build_list_query(
    owner,
    status: Optional[ApplicationStatus] = None,
    is_dream_company: Optional[bool] = None,
    submission_deadline: Optional[DeadlineFilter] = None,
    company_name: Optional[str] = None,
    now=None,
) -> dict:
    """Translate list filters into a MongoDB query for one owner."""
    query = {"user": owner}

    if status:
        query["status"] = ApplicationStatus(status).value

    if is_dream_company is not None:
        query["isDreamCompany"] = is_dream_company

    if submission_deadline:
        now = now or utcnow()
        bucket = DeadlineFilter(submission_deadline)
        if bucket is DeadlineFilter.upcoming:
            # [now, now + 7 days], both ends inclusive
            query["submissionDeadline"] = {"$gte": now, "$lte": now + UPCOMING_WINDOW}
        elif bucket is DeadlineFilter.past:
            query["submissionDeadline"] = {"$lt": now}
        else:
            query["submissionDeadline"] = {"$exists": False}

    if company_name:
        # Substring match; user input is never interpreted as a pattern
        query["companyName"] = {"$regex": re.escape(company_name.strip()), "$options": "i"}

    return query


def _document_fields(data) -> dict:
    """camelCase document fields from a create payload, dropping unset optionals."""
    return {
        "companyName": data.company_name,
        "roleTitle": data.role_title,
        "status": ApplicationStatus(data.status).value,
        "applicationDate": data.application_date or utcnow(),
        "submissionDeadline": data.submission_deadline,
        "isDreamCompany": bool(data.is_dream_company),
        "jobPostUrl": data.job_post_url,
        "notes": data.notes,
    }


class JobApplicationService:
    """
    Owner-scoped job application storage.

    Each mutation ends with a stats recompute for the owner.
    """

    def __init__(self, stats_service: Optional[StatsService] = None):
        self.collection: Collection = get_collection(COLLECTIONS["applications"])
        self.stats_service = stats_service or StatsService()

    def _owned_filter(self, owner_id, application_id) -> dict:
        oid = to_object_id(application_id)
        if oid is None:
            raise NotFound("Job application not found")
        return {"_id": oid, "user": to_object_id(owner_id)}

    def _insert(self, owner_id, fields: dict) -> dict:
        now = utcnow()
        doc = {k: v for k, v in fields.items() if v is not None}
        doc["user"] = to_object_id(owner_id)
        doc["createdAt"] = now
        doc["updatedAt"] = now

        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Job application %s created for user %s", result.inserted_id, owner_id)

        self.stats_service.recompute(owner_id, is_new_application=True)
        return serialize_application(doc)

    def create(self, owner_id, data: ApplicationCreate) -> dict:
        """
        Insert an application owned by owner_id.

        Ownership always comes from the authenticated caller, never the body.
        """
        return self._insert(owner_id, _document_fields(data))

    def create_from_extension(self, owner_id, data: ExtensionApplicationCreate) -> dict:
        """Insert an application scraped by the browser extension."""
        if data.source:
            logger.info("Extension import from %s for user %s", data.source, owner_id)
        return self._insert(owner_id, _document_fields(data))

    def list(
        self,
        owner_id,
        status: Optional[ApplicationStatus] = None,
        is_dream_company: Optional[bool] = None,
        submission_deadline: Optional[DeadlineFilter] = None,
        company_name: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> List[dict]:
        """All of the owner's applications matching the filters, sorted."""
        sort_spec = parse_sort(sort)
        query = build_list_query(
            to_object_id(owner_id),
            status=status,
            is_dream_company=is_dream_company,
            submission_deadline=submission_deadline,
            company_name=company_name,
        )
        cursor = self.collection.find(query).sort(sort_spec)
        return [serialize_application(doc) for doc in cursor]

    def get(self, owner_id, application_id) -> dict:
        doc = self.collection.find_one(self._owned_filter(owner_id, application_id))
        if doc is None:
            raise NotFound("Job application not found")
        return serialize_application(doc)

    def update(self, owner_id, application_id, data: ApplicationUpdate) -> dict:
        """
        Apply the supplied fields only.

        A null optional field (deadline, URL, notes) is removed from the
        document rather than stored as null.
        """
        supplied = data.model_dump(by_alias=True, exclude_unset=True)
        if not supplied:
            raise ValidationFailed("No fields to update")

        to_set, to_unset = {}, {}
        for key, value in supplied.items():
            if value is None and key in CLEARABLE_FIELDS:
                to_unset[key] = ""
            elif key == "status":
                to_set[key] = ApplicationStatus(value).value
            else:
                to_set[key] = value
        to_set["updatedAt"] = utcnow()

        update = {"$set": to_set}
        if to_unset:
            update["$unset"] = to_unset

        doc = self.collection.find_one_and_update(
            self._owned_filter(owner_id, application_id),
            update,
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFound("Job application not found")

        self.stats_service.recompute(owner_id)
        return serialize_application(doc)

    def delete(self, owner_id, application_id) -> None:
        doc = self.collection.find_one_and_delete(self._owned_filter(owner_id, application_id))
        if doc is None:
            raise NotFound("Job application not found")
        logger.info("Job application %s deleted for user %s", application_id, owner_id)

        self.stats_service.recompute(owner_id)


def get_application_service() -> JobApplicationService:
    """Get job application service instance."""
    return JobApplicationService()
