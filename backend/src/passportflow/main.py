"""PassportFlow Backend - Main FastAPI Application

Passport application workflow: submission, multi-stage status tracking,
document attachments, renewal requests and biometrics appointments.

This module creates and configures the FastAPI application:
- API routers (applications, renewals, appointments, statistics, health)
- Middleware (request ID correlation, CORS)
- Exception handlers mapping ``PassportFlowError`` kinds to HTTP status codes
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .applications.router import router as applications_router
from .appointments.router import router as appointments_router
from .config import get_settings
from .database import create_schema
from .dependencies import get_storage
from .domain.errors import PassportFlowError, StorageError
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .renewals.router import router as renewals_router
from .statistics.router import router as statistics_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

ERROR_STATUS_CODES = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "validation_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "processing_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "storage_error": status.HTTP_502_BAD_GATEWAY,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "bad_request": status.HTTP_400_BAD_REQUEST,
    "conflict": status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables and check the document bucket before serving."""
    logger.info(f"PassportFlow API starting (environment={settings.ENVIRONMENT})")
    create_schema()
    try:
        await get_storage().verify_bucket_exists()
    except StorageError as e:
        # uploads return 502 until the bucket is reachable
        logger.warning(f"Document bucket not available at startup: {e.message}")

    yield

    logger.info("PassportFlow API stopped")


is_production = settings.ENVIRONMENT == "production"

app = FastAPI(
    title="PassportFlow API",
    description="Passport application workflow and document handling",
    version="0.1.0",
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc",
    openapi_url=None if is_production else "/openapi.json",
    lifespan=lifespan,
)


# Request ID correlation
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


def _error_response(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message, **extra})


@app.exception_handler(PassportFlowError)
async def passportflow_exception_handler(request: Request, exc: PassportFlowError) -> JSONResponse:
    """Business errors become ``{"error": kind, "message": ...}`` with the kind's status code."""
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.log(
        logging.ERROR if status_code >= 500 else logging.WARNING,
        f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}",
        extra={"error_kind": exc.kind, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = jsonable_encoder(exc.errors())
    logger.warning(f"{request.method} {request.url.path} failed validation", extra={"errors": details})
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        details=details,
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} database error", exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "database_error", "Database unavailable")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} unhandled error", exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal server error")


app.include_router(observability_router)
app.include_router(applications_router, prefix=API_PREFIX)
app.include_router(renewals_router, prefix=API_PREFIX)
app.include_router(appointments_router, prefix=API_PREFIX)
app.include_router(statistics_router, prefix=API_PREFIX)
