"""
Centralized error types and user-friendly error messages.

Every error raised by the stores, the blob stager and the application workflow
is an ``AppError`` subclass. The ``kind`` attribute is the stable,
machine-checkable identifier clients switch on; ``message`` is for humans.
"""
import logging

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or get_error_message(self.kind)
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""
    kind = "invalid_request"
    status_code = 400


class UnauthorizedError(AppError):
    """Missing, malformed or expired credential.

    ``reason`` is one of ``missing``, ``invalid`` or ``expired`` so callers can
    tell the user whether logging in again will help.
    """
    kind = "unauthenticated"
    status_code = 401

    def __init__(self, message: str | None = None, reason: str = "invalid", details: dict | None = None):
        self.reason = reason
        super().__init__(message or get_error_message(f"token_{reason}", get_error_message("unauthorized")), details)


class ForbiddenError(AppError):
    """Authenticated, but wrong role or not the owner."""
    kind = "forbidden"
    status_code = 403


class NotFoundError(AppError):
    kind = "not_found"
    status_code = 404


class DuplicateApplicationError(AppError):
    kind = "duplicate_application"
    status_code = 409


class EmailExistsError(AppError):
    kind = "email_exists"
    status_code = 400


class FileUploadError(AppError):
    """Base for resume file rejections."""
    kind = "invalid_file"
    status_code = 400


class UnsupportedFileTypeError(FileUploadError):
    kind = "unsupported_type"
    status_code = 400


class FileTooLargeError(FileUploadError):
    kind = "too_large"
    status_code = 413


class InternalError(AppError):
    """Storage or filesystem failure not otherwise classified."""
    kind = "internal_error"
    status_code = 500


class BlobStorageError(InternalError):
    """Writing or deleting a staged blob failed at the filesystem level."""


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "invalid_credentials": "Invalid credentials.",
    "email_exists": "An account with this email already exists. Please login instead.",
    "weak_password": "Password does not meet the password policy.",
    "unauthenticated": "Please login to access this feature.",
    "token_missing": "Authentication required.",
    "token_invalid": "Invalid token.",
    "token_expired": "Token expired. Please log in again.",

    # File uploads
    "invalid_file": "The uploaded file could not be accepted.",
    "too_large": "File is too large. Maximum size is 5MB.",
    "unsupported_type": "Invalid file type. Only PDF, DOC, and DOCX files are allowed for resumes.",
    "resume_required": "Resume file is required.",
    "file_missing": "File no longer available on server.",

    # Jobs
    "job_not_found": "Job not found.",
    "job_forbidden": "Forbidden: You do not own this job posting.",
    "invalid_job_data": "Missing required fields: title, description, company_name, location.",

    # Applications
    "duplicate_application": "You have already applied for this job.",
    "application_not_found": "Application not found.",
    "application_forbidden": "Forbidden: You do not own this application.",
    "application_failed": "Failed to submit application. Please try again.",

    # General
    "unauthorized": "Please login to access this feature.",
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "internal_error": "Something went wrong on our end. Please try again later.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "invalid_request": "Please check your input and try again.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def create_error_response(
    status_code: int,
    message: str,
    kind: str,
    details: dict | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
        "kind": kind,
        "status_code": status_code,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content,
    )


def app_error_response(exc: AppError, *, expose_details: bool) -> JSONResponse:
    details = dict(exc.details) if expose_details else {}
    if isinstance(exc, UnauthorizedError):
        details["reason"] = exc.reason
    if expose_details and exc.__cause__ is not None:
        details["cause"] = f"{type(exc.__cause__).__name__}: {exc.__cause__}"
    return create_error_response(exc.status_code, exc.message, exc.kind, details or None)
