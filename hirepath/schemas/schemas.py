"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Attributes are snake_case in Python and camelCase on the wire (and in MongoDB).
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Optional
from urllib.parse import urlparse

from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, StringConstraints,
    field_validator, model_validator
)
from pydantic.alias_generators import to_camel

from hirepath.utils.timeutils import parse_timestamp


# ============================================================
# ENUMS
# ============================================================

class ApplicationStatus(str, Enum):
    to_apply = "To Apply"
    applied = "Applied"
    interviewing = "Interviewing"
    offer = "Offer"
    rejected = "Rejected"
    withdrawn = "Withdrawn"


class KpiLevel(str, Enum):
    just_looking = "Just Looking"
    really_want_it = "Really Want It"
    desperate = "Desperate"


class DeadlineFilter(str, Enum):
    upcoming = "upcoming"
    past = "past"
    none = "none"


MAX_NAME_LENGTH = 200
MAX_NOTES_LENGTH = 2000
DEFAULT_DAILY_TARGET = 10

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_NAME_LENGTH)]
NotesStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=MAX_NOTES_LENGTH)]

# Keys the server owns; clients may echo them back but they never reach the document
SERVER_MANAGED_KEYS = ("_id", "id", "user", "createdAt", "updatedAt", "__v")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(CamelModel):
    """Request bodies accept only their declared fields."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _optional_timestamp(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_timestamp(value)


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: NameStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ExtensionAuthRequest(RequestModel):
    token: str


class KpiSettings(CamelModel):
    daily_target: int = DEFAULT_DAILY_TARGET
    level: str = KpiLevel.just_looking.value
    dream_companies: List[str] = []


class UserStats(CamelModel):
    total_applications: int = 0
    applications_this_month: int = 0
    applications_this_week: int = 0
    applications_today: int = 0
    last_application_date: Optional[datetime] = None


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    picture: Optional[str] = None
    is_google_user: bool = False
    kpi_settings: KpiSettings
    stats: UserStats
    created_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    token: str
    user: UserResponse


class ExtensionAuthResponse(CamelModel):
    authenticated: bool
    user: Optional[UserResponse] = None


# ============================================================
# KPI / STATS SCHEMAS
# ============================================================

class KpiSettingsUpdate(RequestModel):
    daily_target: Optional[int] = Field(None, ge=1)
    level: Optional[KpiLevel] = None
    dream_companies: Optional[List[str]] = None

    @field_validator("daily_target", "level", "dream_companies")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v

    @field_validator("dream_companies")
    @classmethod
    def clean_companies(cls, v: List[str]) -> List[str]:
        return [name.strip() for name in v if name and name.strip()]


class KpiSettingsResponse(CamelModel):
    message: str
    kpi_settings: KpiSettings


class ProgressItem(CamelModel):
    current: int
    target: int
    percentage: float


class Progress(CamelModel):
    daily: ProgressItem
    weekly: ProgressItem
    monthly: ProgressItem


class StatsResponse(CamelModel):
    stats: UserStats
    kpi_settings: KpiSettings
    progress: Progress


# ============================================================
# JOB APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(RequestModel):
    company_name: NameStr
    role_title: NameStr
    status: ApplicationStatus = ApplicationStatus.to_apply
    application_date: Optional[datetime] = None
    submission_deadline: Optional[datetime] = None
    is_dream_company: bool = False
    job_post_url: Optional[str] = None
    notes: Optional[NotesStr] = None

    @model_validator(mode="before")
    @classmethod
    def drop_server_managed(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k not in SERVER_MANAGED_KEYS}
        return data

    @field_validator("application_date", "submission_deadline", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _optional_timestamp(v)

    @field_validator("job_post_url")
    @classmethod
    def check_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not is_valid_url(v):
            raise ValueError("Invalid URL format")
        return v

    @field_validator("notes")
    @classmethod
    def blank_notes(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ApplicationUpdate(ApplicationCreate):
    """Partial update. Only keys present in the body are applied; null clears optional fields."""
    company_name: Optional[NameStr] = None
    role_title: Optional[NameStr] = None
    status: Optional[ApplicationStatus] = None
    is_dream_company: Optional[bool] = None

    @field_validator("company_name", "role_title", "status", "application_date", "is_dream_company")
    @classmethod
    def required_not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v


class ExtensionApplicationCreate(RequestModel):
    """Payload posted by the browser extension; lenient where the scraper is imprecise."""
    company_name: NameStr
    role_title: NameStr
    status: ApplicationStatus = ApplicationStatus.to_apply
    application_date: Optional[datetime] = None
    submission_deadline: Optional[datetime] = None
    is_dream_company: bool = False
    job_post_url: Optional[str] = None
    notes: Optional[str] = None
    location: Optional[str] = None
    source: Optional[str] = None

    @field_validator("company_name", "role_title", mode="before")
    @classmethod
    def truncate_names(cls, v):
        if isinstance(v, str):
            return v.strip()[:MAX_NAME_LENGTH]
        return v

    @field_validator("application_date", "submission_deadline", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _optional_timestamp(v)

    @field_validator("job_post_url")
    @classmethod
    def drop_bad_url(cls, v: Optional[str]) -> Optional[str]:
        if v and is_valid_url(v.strip()):
            return v.strip()
        return None

    @field_validator("notes")
    @classmethod
    def truncate_notes(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip()[:MAX_NOTES_LENGTH] or None


class ApplicationResponse(CamelModel):
    id: str = Field(..., alias="_id")
    user: str
    company_name: str
    role_title: str
    status: ApplicationStatus
    application_date: datetime
    submission_deadline: Optional[datetime] = None
    is_dream_company: bool = False
    job_post_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
