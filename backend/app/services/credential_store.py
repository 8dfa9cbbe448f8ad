import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.user import User
from ..schemas.auth import UserRecord
from ..utils.error_handlers import EmailExistsError

logger = logging.getLogger(__name__)


class CredentialStore:
    """Persists user accounts. Users are never updated once created."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> UserRecord | None:
        row = self.db.query(User).filter(User.email == email).first()
        return UserRecord.model_validate(row) if row else None

    def get_by_id(self, user_id: int) -> UserRecord | None:
        row = self.db.query(User).filter(User.id == int(user_id)).first()
        return UserRecord.model_validate(row) if row else None

    def create(self, *, email: str, password_hash: str, role: str, company_name: str | None = None) -> UserRecord:
        user = User(
            email=email,
            password_hash=password_hash,
            role=role,
            company_name=company_name if role == "employer" else None,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # A concurrent signup took the email between the caller's lookup and this insert.
            if self.get_by_email(email) is not None:
                raise EmailExistsError() from e
            raise
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(user)
        logger.info("Created %s account id=%s", role, user.id)
        return UserRecord.model_validate(user)
