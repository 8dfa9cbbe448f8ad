from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from .. import config
from .error_handlers import UnauthorizedError

ALGORITHM = "HS256"


def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    to_encode = data.copy()
    minutes = config.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry; return the claims.

    Raises UnauthorizedError with reason ``expired`` or ``invalid``.
    """
    if not token:
        raise UnauthorizedError(reason="missing")
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError(reason="expired") from None
    except JWTError:
        raise UnauthorizedError(reason="invalid") from None
