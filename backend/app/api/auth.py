import logging

from fastapi import APIRouter, Depends

from .. import config
from ..schemas.auth import LoginRequest, RegisterRequest, UserRecord
from ..services.credential_store import CredentialStore
from ..utils.dependencies import get_credential_store
from ..utils.error_handlers import EmailExistsError, InternalError, ValidationError, get_error_message
from ..utils.jwt import create_access_token
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_email, validate_password, validate_role, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _issue_token(user: UserRecord) -> str:
    try:
        return create_access_token({"sub": str(user.id), "role": user.role})
    except Exception as e:
        logger.error(f"Token creation error: {e}")
        raise InternalError() from e


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, users: CredentialStore = Depends(get_credential_store)):
    if not payload.email or not payload.password or not payload.role:
        raise ValidationError("Please provide email, password, and role.")

    email = validate_email(payload.email)
    role = validate_role(payload.role)
    validate_password(payload.password, min_length=config.PASSWORD_MIN_LENGTH)

    company_name = None
    if role == "employer":
        company_name = validate_string_field(payload.company_name, "Company name", max_length=255, required=False)
        if not company_name:
            raise ValidationError("Employer role requires a company name.")

    if users.get_by_email(email) is not None:
        raise EmailExistsError()

    try:
        hashed = hash_password(payload.password)
    except ValueError:
        raise ValidationError(get_error_message("weak_password")) from None

    user = users.create(email=email, password_hash=hashed, role=role, company_name=company_name)

    return {
        "success": True,
        "message": "User created successfully",
        "token": _issue_token(user),
        "token_type": "bearer",
        "user": user.public(),
    }


@router.post("/login")
def login(payload: LoginRequest, users: CredentialStore = Depends(get_credential_store)):
    if not payload.email or not payload.password:
        raise ValidationError("Please provide email and password.")

    # Same message whether the email is unknown or the password is wrong.
    user = users.get_by_email(payload.email.strip())
    if not user or not verify_password(payload.password, user.password_hash):
        raise ValidationError(get_error_message("invalid_credentials"))

    return {
        "success": True,
        "token": _issue_token(user),
        "token_type": "bearer",
        "user": user.public(),
    }
