from fastapi import Depends

from ..schemas.auth import Identity
from .access_guard import require_role
from .dependencies import get_current_user


def _role_required(required_role: str):
    def check_role(user: Identity = Depends(get_current_user)) -> Identity:
        return require_role(user, required_role)
    return check_role


employer_only = _role_required("employer")
candidate_only = _role_required("candidate")
