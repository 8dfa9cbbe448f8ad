import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.application import Application
from ..models.job import Job
from ..models.user import User
from ..schemas.auth import Identity
from ..schemas.jobs import ListingRecord
from ..utils.access_guard import require_role
from ..utils.error_handlers import BlobStorageError, ForbiddenError, NotFoundError, ValidationError, get_error_message
from ..utils.validation import validate_string_field
from .blob_stager import BlobStager

logger = logging.getLogger(__name__)

UPDATE_MODES = ("replace", "merge")

# field -> (label, max length)
REQUIRED_FIELDS = {
    "title": ("Title", 150),
    "description": ("Description", 20000),
    "company_name": ("Company name", 255),
    "location": ("Location", 100),
}
OPTIONAL_FIELDS = {
    "job_type": ("Job type", 50),
    "salary_range": ("Salary range", 50),
}


def clean_listing_fields(fields: dict[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Validate listing fields.

    With ``partial`` only the keys present with a non-None value are returned,
    otherwise every column is returned (omitted optionals as None) and the
    required ones must be present.
    """
    cleaned: dict[str, Any] = {}
    missing = [name for name in REQUIRED_FIELDS if fields.get(name) is None or not str(fields.get(name)).strip()]
    if missing and not partial:
        raise ValidationError(get_error_message("invalid_job_data"))

    for name, (label, max_length) in REQUIRED_FIELDS.items():
        if partial and fields.get(name) is None:
            continue
        cleaned[name] = validate_string_field(fields.get(name), label, max_length=max_length)

    for name, (label, max_length) in OPTIONAL_FIELDS.items():
        if partial and fields.get(name) is None:
            continue
        cleaned[name] = validate_string_field(fields.get(name), label, max_length=max_length, required=False)

    return cleaned


class ListingStore:
    """Job postings and their ownership rules."""

    def __init__(self, db: Session, *, blobs: BlobStager | None = None, update_mode: str = "replace"):
        if update_mode not in UPDATE_MODES:
            raise ValueError(f"update_mode must be one of {UPDATE_MODES}, got {update_mode!r}")
        self.db = db
        self.blobs = blobs
        self.update_mode = update_mode

    def _with_employer(self):
        return (
            self.db.query(Job, User.email, User.company_name)
            .join(User, Job.employer_id == User.id)
        )

    @staticmethod
    def _enriched(job: Job, employer_email: str | None, employer_company_name: str | None) -> ListingRecord:
        record = ListingRecord.model_validate(job)
        return record.model_copy(
            update={"employer_email": employer_email, "employer_company_name": employer_company_name}
        )

    def _load_owned(self, job_id: int, caller: Identity) -> Job:
        """Load a job for mutation: NotFound if absent, Forbidden if not the caller's."""
        require_role(caller, "employer")
        job = self.db.query(Job).filter(Job.id == int(job_id)).first()
        if not job:
            raise NotFoundError(get_error_message("job_not_found"))
        if int(job.employer_id) != int(caller.id):
            raise ForbiddenError(get_error_message("job_forbidden"))
        return job

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Database error while %s", action)
            raise

    def create(self, owner: Identity, fields: dict[str, Any]) -> ListingRecord:
        require_role(owner, "employer")
        job = Job(employer_id=int(owner.id), **clean_listing_fields(fields))
        self.db.add(job)
        self._commit("creating job")
        self.db.refresh(job)
        logger.info("Employer %s created job %s", owner.id, job.id)
        return ListingRecord.model_validate(job)

    def get_by_id(self, job_id: int, *, with_employer: bool = False) -> ListingRecord | None:
        if with_employer:
            row = self._with_employer().filter(Job.id == int(job_id)).first()
            return self._enriched(*row) if row else None
        job = self.db.query(Job).filter(Job.id == int(job_id)).first()
        return ListingRecord.model_validate(job) if job else None

    def list_by_owner(self, owner_id: int) -> list[ListingRecord]:
        jobs = (
            self.db.query(Job)
            .filter(Job.employer_id == int(owner_id))
            .order_by(Job.posted_at.desc(), Job.id.desc())
            .all()
        )
        return [ListingRecord.model_validate(j) for j in jobs]

    def list_all(self) -> list[ListingRecord]:
        rows = self._with_employer().order_by(Job.posted_at.desc(), Job.id.desc()).all()
        return [self._enriched(*row) for row in rows]

    def update(self, job_id: int, caller: Identity, fields: dict[str, Any]) -> ListingRecord:
        job = self._load_owned(job_id, caller)

        cleaned = clean_listing_fields(fields, partial=self.update_mode == "merge")
        for name, value in cleaned.items():
            setattr(job, name, value)

        self._commit("updating job")
        self.db.refresh(job)
        return ListingRecord.model_validate(job)

    def delete(self, job_id: int, caller: Identity) -> list[str]:
        """Delete a job and its applications; returns the reclaimed blob handles."""
        job = self._load_owned(job_id, caller)

        handles = [
            h for (h,) in self.db.query(Application.resume_path).filter(Application.job_id == job.id).all()
        ]
        self.db.query(Application).filter(Application.job_id == job.id).delete(synchronize_session=False)
        self.db.delete(job)
        self._commit("deleting job")
        logger.info("Employer %s deleted job %s (%d application(s))", caller.id, job_id, len(handles))

        # Rows are gone; their blobs are now unreferenced.
        if self.blobs is not None:
            for handle in handles:
                try:
                    self.blobs.discard(handle)
                except BlobStorageError as e:
                    logger.warning("Could not reclaim blob %s after deleting job %s: %s", handle, job_id, e)
        return handles
