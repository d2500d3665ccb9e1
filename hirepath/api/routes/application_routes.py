"""
Job Application Routes

POST /applications - Create application
POST /applications/extension - Create application from the browser extension
GET /applications - List own applications with filters
GET /applications/{id} - Get one application
PUT /applications/{id} - Update supplied fields
DELETE /applications/{id} - Delete application
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from hirepath.core.auth import get_current_user
from hirepath.core.errors import ValidationFailed
from hirepath.services.application_service import get_application_service
from hirepath.schemas.schemas import (
    ApplicationCreate, ApplicationUpdate, ApplicationResponse,
    ApplicationStatus, DeadlineFilter, ExtensionApplicationCreate, MessageResponse
)

router = APIRouter(prefix="/applications", tags=["Job Applications"])

TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_enum(enum_cls, field: str, value: Optional[str]):
    value = _blank_to_none(value)
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationFailed.for_field(field, f"must be one of: {allowed}") from None


def _parse_bool(field: str, value: Optional[str]) -> Optional[bool]:
    value = _blank_to_none(value)
    if value is None:
        return None
    if value.lower() in TRUE_VALUES:
        return True
    if value.lower() in FALSE_VALUES:
        return False
    raise ValidationFailed.for_field(field, "must be true or false")


@router.post("", response_model=ApplicationResponse, response_model_exclude_none=True, status_code=201)
def create_application(data: ApplicationCreate, user: dict = Depends(get_current_user)):
    """Create a job application owned by the current user."""
    service = get_application_service()
    return service.create(user["_id"], data)


@router.post("/extension", response_model=ApplicationResponse, response_model_exclude_none=True, status_code=201)
def create_from_extension(data: ExtensionApplicationCreate, user: dict = Depends(get_current_user)):
    """
    Save a job scraped by the browser extension.

    Validation is lenient: status defaults to "To Apply", long text is
    truncated and an unusable job URL is dropped instead of rejected.
    """
    service = get_application_service()
    return service.create_from_extension(user["_id"], data)


@router.get("", response_model=List[ApplicationResponse], response_model_exclude_none=True)
def list_applications(
    status: Optional[str] = Query(None),
    is_dream_company: Optional[str] = Query(None, alias="isDreamCompany"),
    submission_deadline: Optional[str] = Query(
        None, alias="submissionDeadline", description="upcoming | past | none"
    ),
    company_name: Optional[str] = Query(None, alias="companyName", description="Case-insensitive substring"),
    sort: Optional[str] = Query(None, description="e.g. -applicationDate or companyName"),
    user: dict = Depends(get_current_user)
):
    """List the current user's applications, newest application date first by default."""
    service = get_application_service()
    return service.list(
        user["_id"],
        status=_parse_enum(ApplicationStatus, "status", status),
        is_dream_company=_parse_bool("isDreamCompany", is_dream_company),
        submission_deadline=_parse_enum(DeadlineFilter, "submissionDeadline", submission_deadline),
        company_name=_blank_to_none(company_name),
        sort=_blank_to_none(sort),
    )


@router.get("/{application_id}", response_model=ApplicationResponse, response_model_exclude_none=True)
def get_application(application_id: str, user: dict = Depends(get_current_user)):
    """Get one of the current user's applications."""
    service = get_application_service()
    return service.get(user["_id"], application_id)


@router.put("/{application_id}", response_model=ApplicationResponse, response_model_exclude_none=True)
def update_application(
    application_id: str,
    data: ApplicationUpdate,
    user: dict = Depends(get_current_user)
):
    """Update an application. Only provided fields are changed."""
    service = get_application_service()
    return service.update(user["_id"], application_id, data)


@router.delete("/{application_id}", response_model=MessageResponse)
def delete_application(application_id: str, user: dict = Depends(get_current_user)):
    """Delete an application."""
    service = get_application_service()
    service.delete(user["_id"], application_id)
    return MessageResponse(message="Job application deleted")
