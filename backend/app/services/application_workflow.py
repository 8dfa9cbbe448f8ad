"""
Application submission: stage the resume, check the job, commit the row.

The resume file and the application row live in different stores with no
shared transaction, so every failure after the file is staged discards it
before the error reaches the caller:

    received -> validated -> staged -> checked -> committed
                    |            |         |
                 aborted   aborted /  rolled_back

Once ``committed``, the blob belongs to the application row and is never
touched here again.
"""
from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
from typing import BinaryIO

from ..schemas.applications import ApplicationRecord
from ..schemas.auth import Identity
from ..utils.access_guard import require_role
from ..utils.error_handlers import (
    AppError,
    DuplicateApplicationError,
    InternalError,
    NotFoundError,
    ValidationError,
    get_error_message,
)
from ..utils.validation import sanitize_filename, validate_integer_field, validate_string_field
from .application_ledger import ApplicationLedger
from .blob_stager import BlobStager, StagedBlob
from .listing_store import ListingStore

logger = logging.getLogger(__name__)

MAX_COVER_LETTER_CHARS = 10000


class SubmissionState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    STAGED = "staged"
    CHECKED = "checked"
    COMMITTED = "committed"
    ABORTED = "aborted"
    ROLLED_BACK = "rolled_back"


@dataclass
class ResumeUpload:
    stream: BinaryIO | None
    content_type: str | None
    filename: str | None = None
    size_bytes: int | None = None


class ApplicationWorkflow:
    """One submission per instance; ``state`` holds where the last submit ended."""

    def __init__(self, *, listings: ListingStore, ledger: ApplicationLedger, blobs: BlobStager):
        self.listings = listings
        self.ledger = ledger
        self.blobs = blobs
        self.state = SubmissionState.RECEIVED

    def _transition(self, state: SubmissionState, **context) -> None:
        self.state = state
        logger.debug("submission -> %s %s", state.value, context or "")

    def _validate(
        self,
        identity: Identity,
        job_id,
        resume: ResumeUpload | None,
        cover_letter,
    ) -> tuple[int, str, str | None]:
        require_role(identity, "candidate")
        job_id = validate_integer_field(job_id, "Job ID", min_value=1)
        if resume is None or resume.stream is None or not resume.filename:
            raise ValidationError(get_error_message("resume_required"))
        original_filename = sanitize_filename(Path(resume.filename).name)
        cover_letter = validate_string_field(
            cover_letter, "Cover letter", max_length=MAX_COVER_LETTER_CHARS, required=False
        )
        return job_id, original_filename, cover_letter

    def _compensate(self, staged: StagedBlob, terminal: SubmissionState) -> None:
        try:
            self.blobs.discard(staged.handle)
        except Exception:
            # Never let cleanup replace the error that triggered it.
            logger.exception("Failed to discard staged blob %s", staged.handle)
        self._transition(terminal, handle=staged.handle)

    def submit(
        self,
        identity: Identity,
        job_id,
        resume: ResumeUpload | None,
        cover_letter: str | None = None,
    ) -> ApplicationRecord:
        self._transition(SubmissionState.RECEIVED)
        try:
            job_id, original_filename, cover_letter = self._validate(identity, job_id, resume, cover_letter)
        except AppError:
            self._transition(SubmissionState.ABORTED)
            raise
        self._transition(SubmissionState.VALIDATED, job_id=job_id, candidate_id=identity.id)

        try:
            staged = self.blobs.stage(
                resume.stream,
                resume.content_type,
                size_bytes=resume.size_bytes,
                original_filename=original_filename,
            )
        except AppError:
            # Nothing was written; the stager already removed any partial file.
            self._transition(SubmissionState.ABORTED)
            raise
        self._transition(SubmissionState.STAGED, handle=staged.handle)

        try:
            if self.listings.get_by_id(job_id) is None:
                raise NotFoundError(get_error_message("job_not_found"))
            if self.ledger.exists(job_id, identity.id):
                raise DuplicateApplicationError()
            self._transition(SubmissionState.CHECKED)

            application_id = self.ledger.create(
                job_id=job_id,
                candidate_id=identity.id,
                blob=staged,
                cover_letter=cover_letter,
            )
        except (NotFoundError, DuplicateApplicationError):
            self._compensate(staged, SubmissionState.ABORTED)
            raise
        except AppError:
            self._compensate(staged, SubmissionState.ROLLED_BACK)
            raise
        except Exception as e:
            self._compensate(staged, SubmissionState.ROLLED_BACK)
            logger.error(f"Application commit failed job={job_id} candidate={identity.id}: {e}")
            raise InternalError(get_error_message("application_failed")) from e
        except BaseException:
            # Cancellation or shutdown mid-commit still releases the blob.
            self._compensate(staged, SubmissionState.ROLLED_BACK)
            raise

        # The row is committed and owns the blob from here on; later failures
        # must leave the blob in place.
        self._transition(SubmissionState.COMMITTED, application_id=application_id)
        logger.info(
            "Candidate %s applied to job %s (application %s, blob %s)",
            identity.id, job_id, application_id, staged.handle,
        )

        try:
            record = self.ledger.get_by_id(application_id)
        except Exception as e:
            logger.error(f"Application {application_id} committed but could not be reloaded: {e}")
            raise InternalError(get_error_message("application_failed")) from e
        if record is None:
            # Removed by a concurrent job delete, which also reclaims the blob.
            raise NotFoundError(get_error_message("application_not_found"))
        return record


def reclaim_orphan_blobs(ledger: ApplicationLedger, blobs: BlobStager, *, min_age_s: float) -> list[str]:
    """Remove staged blobs left behind by a crash between staging and commit/cleanup."""
    return blobs.sweep_unreferenced(ledger.referenced_handles(), min_age_s=min_age_s)
