from contextlib import asynccontextmanager
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from carelink.api import (
    assistant,
    auth,
    doctor,
    health,
    hospital_admin,
    hospitals,
    patients,
    profile,
    superadmin,
)
from carelink.config import settings
from carelink.database import close_db, init_db
from carelink.logging import actor_id_var, configure_logging, request_id_var
from carelink.services.errors import PartialFailureError, ServiceError

configure_logging()
logger = logging.getLogger("carelink")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting CareLink API")
    try:
        await init_db()
        logger.info("Database initialized")
    except Exception:
        logger.exception("Failed to initialize database")
        raise

    yield

    logger.info("Shutting down CareLink API")
    try:
        await close_db()
        logger.info("Database connections closed")
    except Exception:
        logger.exception("Error closing database")
    logger.info("CareLink API shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    # CareLink API

    Hospital onboarding and patient registration across hospitals.

    ## Features

    - **Registration** - Doctors and hospital admins sign up and wait for approval
    - **Approvals** - Super admins approve hospital admins and hospitals; hospital admins approve their doctors and assistants
    - **Patients** - Assistants register patients by national id, reusing one identity across hospitals
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
    request_id_var.set(request_id)
    actor_id_var.set(None)
    response = await call_next(request)
    response.headers.setdefault("X-Request-Id", request_id)
    return response


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if not settings.debug:
        response.headers.setdefault(
            "Strict-Transport-Security",
            "max-age=63072000; includeSubDomains; preload",
        )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.include_router(health.router)
for router in (
    auth.router,
    profile.router,
    hospitals.router,
    superadmin.router,
    hospital_admin.router,
    doctor.router,
    assistant.router,
    patients.router,
):
    app.include_router(router, prefix=settings.api_prefix)


def _error_response(status_code: int, message, error_type: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": message,
            "status_code": status_code,
            "type": error_type,
            "request_id": request_id_var.get(),
            **extra,
        },
    )


def _jsonable_errors(errors) -> list[dict]:
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]


@app.exception_handler(ServiceError)
async def service_exception_handler(_request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.error_type, exc.message)
    extra = {}
    if isinstance(exc, PartialFailureError):
        extra["applied"] = exc.applied
    return _error_response(exc.status_code, exc.message, exc.error_type, **extra)


@app.exception_handler(HTTPException)
async def http_exception_handler(_request: Request, exc: HTTPException):
    return _error_response(exc.status_code, exc.detail, "http_error")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Validation error")
    return _error_response(
        400,
        message,
        "validation_error",
        details=_jsonable_errors(errors),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(_request: Request, _exc: Exception):
    logger.exception("Unhandled error")
    return _error_response(500, "Internal server error", "server_error")
