"""FastAPI dependency providers.

Stores are built per request around the request's session so tests can swap
the session (``get_db``) or the blob root (``get_blob_stager``) through
``app.dependency_overrides``.
"""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..schemas.auth import Identity
from ..services.application_ledger import ApplicationLedger
from ..services.application_workflow import ApplicationWorkflow
from ..services.blob_stager import BlobStager
from ..services.credential_store import CredentialStore
from ..services.listing_store import ListingStore
from .access_guard import authenticate
from .error_handlers import UnauthorizedError

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError(reason="missing")
    return authenticate(credentials.credentials)


def get_blob_stager() -> BlobStager:
    return BlobStager(config.UPLOAD_DIR, max_bytes=config.MAX_RESUME_BYTES)


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_listing_store(
    db: Session = Depends(get_db),
    blobs: BlobStager = Depends(get_blob_stager),
) -> ListingStore:
    return ListingStore(db, blobs=blobs, update_mode=config.JOB_UPDATE_MODE)


def get_application_ledger(db: Session = Depends(get_db)) -> ApplicationLedger:
    return ApplicationLedger(db)


def get_application_workflow(
    listings: ListingStore = Depends(get_listing_store),
    ledger: ApplicationLedger = Depends(get_application_ledger),
    blobs: BlobStager = Depends(get_blob_stager),
) -> ApplicationWorkflow:
    return ApplicationWorkflow(listings=listings, ledger=ledger, blobs=blobs)
