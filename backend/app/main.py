from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException

from . import config, database
from .api import applications as applications_api
from .api import auth as auth_api
from .api import jobs as jobs_api
from .logging_config import configure_logging
from .utils.error_handlers import AppError, app_error_response, create_error_response, get_error_message

SERVICE_NAME = "Job Board API"

logger = logging.getLogger(__name__)


def _expose_details() -> bool:
    return config.ENVIRONMENT != "production"


async def app_error_handler(request: Request, exc: AppError):
    """Typed application errors carry their own status and kind."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc.__cause__ or exc)
    return app_error_response(exc, expose_details=_expose_details())


async def http_exception_handler(request: Request, exc: HTTPException):
    return create_error_response(exc.status_code, str(exc.detail), "http_error")


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are 400 invalid_request, like every other input error."""
    details = None
    if _expose_details():
        details = {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]}
    return create_error_response(400, get_error_message("invalid_request"), "invalid_request", details)


async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
    """Handle database operational errors."""
    logger.exception("Database OperationalError: %s", exc)
    details = {"cause": str(getattr(exc, "orig", None) or exc)} if _expose_details() else None
    return create_error_response(503, get_error_message("database_error"), "internal_error", details)


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    """Handle general database errors."""
    logger.exception("Database SQLAlchemyError: %s", exc)
    details = {"cause": str(exc)} if _expose_details() else None
    return create_error_response(500, get_error_message("database_error"), "internal_error", details)


async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors globally."""
    logger.exception("Unhandled exception: %s", exc)
    details = {"cause": f"{type(exc).__name__}: {exc}"} if _expose_details() else None
    return create_error_response(500, get_error_message("server_error"), "internal_error", details)


def register_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(AppError, app_error_handler)
    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, request_validation_error_handler)
    application.add_exception_handler(OperationalError, sqlalchemy_operational_error_handler)
    application.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    application.add_exception_handler(Exception, global_exception_handler)


def health_check():
    """Liveness probe."""
    return {"status": "ok", "service": SERVICE_NAME}


@asynccontextmanager
async def lifespan(application: FastAPI):
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    database.init_db()
    logger.info("Database initialized (%s)", config.ENVIRONMENT)
    yield


def create_app(*, init_database: bool = True) -> FastAPI:
    """Build the API. Tests pass ``init_database=False`` and wire their own DB."""
    configure_logging()

    application = FastAPI(title=SERVICE_NAME, lifespan=lifespan if init_database else None)
    application.include_router(auth_api.router)
    application.include_router(jobs_api.router)
    application.include_router(applications_api.router)
    application.add_api_route("/api/health", health_check, methods=["GET"])
    register_exception_handlers(application)

    _default_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
    _extra_origins = [
        origin.strip()
        for origin in os.getenv("FRONTEND_ORIGINS", "").split(",")
        if origin.strip()
    ]
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[*_default_origins, *_extra_origins],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return application


app = create_app()
