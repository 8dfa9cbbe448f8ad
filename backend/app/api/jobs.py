import logging

from fastapi import APIRouter, Depends

from ..schemas.auth import Identity
from ..schemas.jobs import JobPayload
from ..services.listing_store import ListingStore
from ..utils.dependencies import get_listing_store
from ..utils.error_handlers import NotFoundError, get_error_message
from ..utils.roles import employer_only

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


@router.post("", status_code=201)
def create_job(
    payload: JobPayload,
    listings: ListingStore = Depends(get_listing_store),
    user: Identity = Depends(employer_only),
):
    job = listings.create(user, payload.model_dump())
    return {"success": True, "message": "Job created successfully", "job": job.public()}


@router.get("")
def list_jobs(listings: ListingStore = Depends(get_listing_store)):
    return {"success": True, "jobs": [j.public() for j in listings.list_all()]}


@router.get("/my-postings")
def list_my_postings(
    listings: ListingStore = Depends(get_listing_store),
    user: Identity = Depends(employer_only),
):
    return {"success": True, "jobs": [j.public() for j in listings.list_by_owner(user.id)]}


@router.get("/{job_id:int}")
def get_job(job_id: int, listings: ListingStore = Depends(get_listing_store)):
    job = listings.get_by_id(job_id, with_employer=True)
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    return {"success": True, "job": job.public()}


@router.put("/{job_id:int}")
def update_job(
    job_id: int,
    payload: JobPayload,
    listings: ListingStore = Depends(get_listing_store),
    user: Identity = Depends(employer_only),
):
    job = listings.update(job_id, user, payload.model_dump())
    return {"success": True, "message": "Job updated successfully", "job": job.public()}


@router.delete("/{job_id:int}", status_code=200)
def delete_job(
    job_id: int,
    listings: ListingStore = Depends(get_listing_store),
    user: Identity = Depends(employer_only),
):
    listings.delete(job_id, user)
    return {"success": True, "message": "Job deleted successfully", "deleted_job_id": job_id}
