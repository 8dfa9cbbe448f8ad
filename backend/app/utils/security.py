"""Password hashing for stored credentials."""
import bcrypt

from .. import config

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


def password_bytes(password: str) -> bytes | None:
    """UTF-8 encode `password`, or None when it is empty or bcrypt would truncate it."""
    if not password:
        return None
    encoded = password.encode("utf-8")
    return encoded if len(encoded) <= BCRYPT_MAX_BYTES else None


def hash_password(password: str) -> str:
    encoded = password_bytes(password)
    if encoded is None:
        raise ValueError(f"Password must be 1 to {BCRYPT_MAX_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(password: str, stored_hash: str | None) -> bool:
    """Check `password` against a stored hash. Malformed hashes never match."""
    encoded = password_bytes(password)
    if encoded is None or not stored_hash:
        return False
    try:
        return bcrypt.checkpw(encoded, stored_hash.encode("utf-8"))
    except ValueError:
        return False
