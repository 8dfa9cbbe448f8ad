import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.application import Application
from ..models.job import Job
from ..models.user import User
from ..schemas.applications import ApplicationRecord
from ..utils.error_handlers import DuplicateApplicationError
from .blob_stager import StagedBlob

logger = logging.getLogger(__name__)


class ApplicationLedger:
    """Application rows, unique per (job, candidate)."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _record(application: Application, **enrichment) -> ApplicationRecord:
        return ApplicationRecord.model_validate(application).model_copy(update=enrichment)

    def exists(self, job_id: int, candidate_id: int) -> bool:
        return (
            self.db.query(Application.id)
            .filter(Application.job_id == int(job_id), Application.candidate_id == int(candidate_id))
            .first()
            is not None
        )

    def create(
        self,
        *,
        job_id: int,
        candidate_id: int,
        blob: StagedBlob,
        cover_letter: str | None = None,
    ) -> int:
        """Insert an application row and return its id.

        The unique constraint on (job_id, candidate_id) is the authoritative
        duplicate check; a prior ``exists`` call can race with another writer.
        Nothing touches the database after the commit, so a returned id
        always names a committed row. Load the record with ``get_by_id``.
        """
        application = Application(
            job_id=int(job_id),
            candidate_id=int(candidate_id),
            resume_path=blob.handle,
            resume_original_filename=blob.original_filename,
            resume_content_type=blob.content_type,
            resume_size_bytes=blob.size_bytes,
            cover_letter=cover_letter,
        )
        self.db.add(application)
        try:
            self.db.flush()
            # Read before commit: expire_on_commit would reload it afterwards.
            application_id = int(application.id)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # Classify by re-reading instead of parsing the driver's message:
            # if the pair exists now, the unique constraint is what fired.
            if self.exists(job_id, candidate_id):
                logger.info("Duplicate application rejected by constraint job=%s candidate=%s", job_id, candidate_id)
                raise DuplicateApplicationError() from e
            raise
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return application_id

    def list_by_job(self, job_id: int) -> list[ApplicationRecord]:
        rows = (
            self.db.query(Application, User.email)
            .join(User, Application.candidate_id == User.id)
            .filter(Application.job_id == int(job_id))
            .order_by(Application.applied_at.desc(), Application.id.desc())
            .all()
        )
        return [self._record(a, candidate_email=email) for a, email in rows]

    def list_by_candidate(self, candidate_id: int) -> list[ApplicationRecord]:
        rows = (
            self.db.query(Application, Job.title, Job.company_name)
            .join(Job, Application.job_id == Job.id)
            .filter(Application.candidate_id == int(candidate_id))
            .order_by(Application.applied_at.desc(), Application.id.desc())
            .all()
        )
        return [self._record(a, job_title=title, job_company_name=company) for a, title, company in rows]

    def get_by_id(self, application_id: int) -> ApplicationRecord | None:
        row = (
            self.db.query(Application, User.email, Job.title, Job.company_name, Job.employer_id)
            .join(User, Application.candidate_id == User.id)
            .join(Job, Application.job_id == Job.id)
            .filter(Application.id == int(application_id))
            .first()
        )
        if not row:
            return None
        a, email, title, company, employer_id = row
        return self._record(
            a,
            candidate_email=email,
            job_title=title,
            job_company_name=company,
            employer_id=int(employer_id),
        )

    def referenced_handles(self) -> set[str]:
        return {h for (h,) in self.db.query(Application.resume_path).all()}
