from .applications import ApplicationRecord
from .auth import Identity, LoginRequest, RegisterRequest, UserRecord
from .jobs import JobPayload, ListingRecord

__all__ = [
    "ApplicationRecord",
    "Identity",
    "JobPayload",
    "ListingRecord",
    "LoginRequest",
    "RegisterRequest",
    "UserRecord",
]
