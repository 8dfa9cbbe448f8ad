"""
Validation utilities for request input.

All helpers raise ``ValidationError`` (HTTP 400, kind ``invalid_request``).
"""
import re
from typing import Any

from .error_handlers import ValidationError
from .security import BCRYPT_MAX_BYTES

VALID_ROLES = ("employer", "candidate")

_EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def validate_email(email: Any) -> str:
    """Validate email format.

    Emails are trimmed but otherwise kept exactly as typed; lookups are
    case-sensitive.
    """
    if not email or not isinstance(email, str):
        raise ValidationError("Email is required")

    email = email.strip()
    if len(email) > 255:
        raise ValidationError("Email too long (max 255 characters)")

    if not re.match(_EMAIL_PATTERN, email):
        raise ValidationError("Invalid email format")

    return email


def validate_password(password: Any, min_length: int = 6) -> None:
    """Validate password against the configured policy."""
    if not password or not isinstance(password, str):
        raise ValidationError("Password is required")

    if min_length and len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters long.")

    # bcrypt truncates past its limit; refuse rather than silently ignore the tail.
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password too long (max {BCRYPT_MAX_BYTES} bytes)")


def validate_role(role: Any) -> str:
    """Validate user role."""
    if not role or not isinstance(role, str):
        raise ValidationError("Role is required")

    role = role.strip().lower()
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")

    return role


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    value = value.strip()

    if not value:
        if required:
            raise ValidationError(f"{field_name} cannot be empty")
        return None

    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(value) > max_length:
        raise ValidationError(f"{field_name} must not exceed {max_length} characters")

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field (form fields arrive as strings)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a valid integer")

    if not isinstance(value, int):
        try:
            value = int(str(value).strip())
        except (ValueError, TypeError):
            raise ValidationError(f"{field_name} must be a valid integer") from None

    if min_value is not None and value < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")

    return value


def sanitize_filename(filename: str) -> str:
    """Sanitize a client-supplied filename for storage as metadata."""
    if not filename:
        raise ValidationError("Filename is required")

    # Remove any path separators and null bytes
    filename = filename.replace("/", "_").replace("\\", "_").replace("\x00", "")

    # Remove directory traversal sequences and leading dots
    filename = filename.replace("..", "_").lstrip(".")

    if len(filename) > 255:
        raise ValidationError("Filename too long")

    if not filename or filename == "_":
        raise ValidationError("Invalid filename")

    return filename
