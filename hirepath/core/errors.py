"""
Application errors and their HTTP mapping.

Services raise these; the handlers registered in main.py turn them into
JSON bodies of the form {"message": ..., "code": ...}.
"""

from typing import List, Optional


class AppError(Exception):
    """Base error carrying an HTTP status and a stable error code."""

    status_code = 500
    code = "ServerError"

    def __init__(self, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = {"message": self.message, "code": self.code}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationFailed(AppError):
    status_code = 400
    code = "Validation"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls(f"{field}: {message}", errors=[{"field": field, "message": message}])


class Unauthorized(AppError):
    status_code = 401
    code = "Unauthorized"


class NotFound(AppError):
    status_code = 404
    code = "NotFound"


class Conflict(AppError):
    status_code = 400
    code = "Conflict"


class AccountConflict(AppError):
    status_code = 400
    code = "AccountConflict"


class InvalidCredentials(AppError):
    status_code = 400
    code = "InvalidCredentials"


class ServerError(AppError):
    status_code = 500
    code = "ServerError"
