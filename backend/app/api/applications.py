import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from ..schemas.auth import Identity
from ..services.application_access import (
    get_application_details,
    get_applications_by_candidate,
    get_applications_for_job,
)
from ..services.application_ledger import ApplicationLedger
from ..services.application_workflow import ApplicationWorkflow, ResumeUpload
from ..services.blob_stager import BlobStager
from ..services.listing_store import ListingStore
from ..utils.dependencies import (
    get_application_ledger,
    get_application_workflow,
    get_blob_stager,
    get_current_user,
    get_listing_store,
)
from ..utils.error_handlers import NotFoundError, get_error_message
from ..utils.roles import candidate_only, employer_only

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["Applications"])


# Plain `def` endpoints run in the threadpool, so blocking file and database
# I/O never stalls the event loop, and a client disconnect does not interrupt
# a submission halfway through its compensation logic.
@router.post("", status_code=201)
def submit_application(
    jobId: str | None = Form(default=None),
    cover_letter: str | None = Form(default=None),
    resume: UploadFile | None = File(default=None),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
    user: Identity = Depends(get_current_user),
):
    upload = None
    if resume is not None:
        upload = ResumeUpload(
            stream=resume.file,
            content_type=resume.content_type,
            filename=resume.filename,
            size_bytes=resume.size,
        )
    try:
        application = workflow.submit(user, jobId, upload, cover_letter)
    finally:
        if resume is not None:
            resume.file.close()

    return {
        "success": True,
        "message": "Application submitted successfully",
        "application": application.public(),
    }


@router.get("/job/{job_id:int}")
def list_applications_for_job(
    job_id: int,
    listings: ListingStore = Depends(get_listing_store),
    ledger: ApplicationLedger = Depends(get_application_ledger),
    user: Identity = Depends(employer_only),
):
    rows = get_applications_for_job(listings, ledger, job_id, user)
    return {"success": True, "applications": [a.public() for a in rows]}


@router.get("/my-applications")
def list_my_applications(
    ledger: ApplicationLedger = Depends(get_application_ledger),
    user: Identity = Depends(candidate_only),
):
    rows = get_applications_by_candidate(ledger, user)
    return {"success": True, "applications": [a.public() for a in rows]}


@router.get("/{application_id:int}")
def application_details(
    application_id: int,
    ledger: ApplicationLedger = Depends(get_application_ledger),
    user: Identity = Depends(get_current_user),
):
    application = get_application_details(ledger, application_id, user)
    return {"success": True, "application": application.public()}


@router.get("/{application_id:int}/resume")
def download_application_resume(
    application_id: int,
    ledger: ApplicationLedger = Depends(get_application_ledger),
    blobs: BlobStager = Depends(get_blob_stager),
    user: Identity = Depends(get_current_user),
):
    """Stream the resume for an application (same access rule as the detail view)."""
    application = get_application_details(ledger, application_id, user)

    abs_path = blobs.resolve(application.resume_path)
    if not abs_path.is_file():
        logger.error(f"Resume file missing on server: {abs_path}")
        raise NotFoundError(get_error_message("file_missing"))

    return FileResponse(
        abs_path,
        media_type=application.resume_content_type or "application/octet-stream",
        filename=application.resume_original_filename or abs_path.name,
    )
