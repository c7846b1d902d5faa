# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .admin import setup_admin
from .core.config import settings
from .routes import (
    auth,
    cases,
    diagnosis,
    ds160,
    engine,
    health,
    links,
    notifications,
    statistics,
    translation,
)
from .schemas.error import ErrorResponse, ValidationDetail

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup/shutdown lifecycle."""
    from db.database import db_service

    from .services.storage import init_storage_service

    init_storage_service(settings)
    if settings.ENGINE_BASE_URL is None:
        logger.warning("ENGINE_BASE_URL not set: diagnosis and translation will not be dispatched")
    yield
    await db_service.close()


app = FastAPI(
    title="Visa Desk API",
    description="Case management for visa consulting agencies",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    410: "Gone",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
}


def _build_error(
    status_code: int, detail: str | list[ValidationDetail], request: Request, request_id: str
) -> ErrorResponse:
    return ErrorResponse(
        type="about:blank",
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=request_id,
        instance=request.url.path,
    )


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", str(uuid.uuid4()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details.

    A list ``detail`` (field-level validation failures raised by routes) is
    passed through as structured items.
    """
    if isinstance(exc.detail, list):
        detail = [ValidationDetail(**item) for item in exc.detail]
    else:
        detail = str(exc.detail)
    body = _build_error(exc.status_code, detail, request, _request_id(request))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors to RFC 7807 Problem Details."""
    detail = [
        ValidationDetail(loc=list(err["loc"]), msg=err["msg"], type=err["type"])
        for err in exc.errors()
    ]
    body = _build_error(422, detail, request, _request_id(request))
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    request_id = _request_id(request)
    logger.exception("Unhandled exception (request_id=%s)", request_id)
    body = _build_error(500, "An unexpected error occurred.", request, request_id)
    return JSONResponse(status_code=500, content=body.model_dump())


# Include routers
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["auth"])
app.include_router(cases.router, prefix=f"{API_PREFIX}/cases", tags=["cases"])
app.include_router(links.router, prefix=API_PREFIX, tags=["links"])
app.include_router(diagnosis.router, prefix=API_PREFIX, tags=["diagnosis"])
app.include_router(translation.router, prefix=API_PREFIX, tags=["translation"])
app.include_router(ds160.router, prefix=f"{API_PREFIX}/ds160", tags=["ds160"])
app.include_router(statistics.router, prefix=f"{API_PREFIX}/statistics", tags=["statistics"])
app.include_router(
    notifications.router, prefix=f"{API_PREFIX}/notifications", tags=["notifications"]
)
app.include_router(engine.router, prefix=f"{API_PREFIX}/engine", tags=["engine"])

# Setup SQLAdmin dashboard at /admin
setup_admin(app)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": "Welcome to Visa Desk API"}
