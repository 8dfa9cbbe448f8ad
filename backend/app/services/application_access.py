"""Ownership rules for reading applications."""
from ..schemas.applications import ApplicationRecord
from ..schemas.auth import Identity
from ..utils.access_guard import require_role
from ..utils.error_handlers import ForbiddenError, NotFoundError, get_error_message
from .application_ledger import ApplicationLedger
from .listing_store import ListingStore


def get_application_details(ledger: ApplicationLedger, application_id: int, identity: Identity) -> ApplicationRecord:
    """Visible to the candidate who applied and to the employer owning the job."""
    application = ledger.get_by_id(application_id)
    if application is None:
        raise NotFoundError(get_error_message("application_not_found"))

    if identity.role == "candidate":
        if int(identity.id) != int(application.candidate_id):
            raise ForbiddenError(get_error_message("application_forbidden"))
    elif identity.role == "employer":
        if int(identity.id) != int(application.employer_id or 0):
            raise ForbiddenError("Forbidden: You do not own the job this application is for.")
    else:
        raise ForbiddenError()
    return application


def get_applications_for_job(
    listings: ListingStore,
    ledger: ApplicationLedger,
    job_id: int,
    identity: Identity,
) -> list[ApplicationRecord]:
    require_role(identity, "employer")
    job = listings.get_by_id(job_id)
    if job is None:
        raise NotFoundError(get_error_message("job_not_found"))
    if int(job.employer_id) != int(identity.id):
        raise ForbiddenError("Forbidden: You do not own this job.")
    return ledger.list_by_job(job_id)


def get_applications_by_candidate(ledger: ApplicationLedger, identity: Identity) -> list[ApplicationRecord]:
    # The caller's own id is the filter, so there is nothing else to own.
    require_role(identity, "candidate")
    return ledger.list_by_candidate(identity.id)
