"""Bearer credential verification and role checks."""
from ..schemas.auth import Identity
from .error_handlers import ForbiddenError, UnauthorizedError
from .jwt import decode_access_token


def authenticate(token: str | None) -> Identity:
    """Turn a bearer token into an Identity.

    Raises UnauthorizedError; ``reason`` tells missing, invalid and expired apart.
    """
    if not token:
        raise UnauthorizedError(reason="missing")

    claims = decode_access_token(token)
    try:
        return Identity(id=int(claims["sub"]), role=str(claims["role"]))
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError(reason="invalid") from None


def require_role(identity: Identity, expected_role: str) -> Identity:
    if identity.role != expected_role:
        raise ForbiddenError(f"Forbidden: {expected_role.capitalize()} access only")
    return identity
