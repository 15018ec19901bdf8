"""FastAPI application entry point.

FX League API - demo trading tournament lifecycle
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from fxleague import __version__
from fxleague.api import admin, tournaments
from fxleague.config import get_settings
from fxleague.logging_config import bind_context, clear_context, configure_logging, get_logger
from fxleague.utils.db import close_db, engine, init_db
from fxleague.utils.errors import ErrorCode, LeagueError
from fxleague.utils.json_utils import ORJSONResponse

settings = get_settings()

configure_logging(
    log_level=settings.log_level,
    json_logs=settings.app_env == "production",
    app_env=settings.app_env,
)
logger = get_logger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("app_starting", env=settings.app_env, version=__version__)
    await init_db()
    logger.info("database_connected")

    yield

    logger.info("app_stopping")
    await close_db()
    logger.info("database_closed")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="FX League API",
    version=__version__,
    description="Demo trading tournament registration, review and results API",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)


# =============================================================================
# Middleware
# =============================================================================


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add X-Request-ID header to all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = datetime.now(timezone.utc)

        clear_context()
        bind_context(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration=round(duration, 3),
        )
        return response


app.add_middleware(RequestIDMiddleware)

cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# Error Handlers
# =============================================================================


def get_request_id(request: Request) -> str:
    """Get request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("X-Request-ID", str(uuid.uuid4()))


def create_error_response(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    """Create standardized error response."""
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
        "traceId": trace_id,
    }


@app.exception_handler(LeagueError)
async def league_error_handler(request: Request, exc: LeagueError) -> ORJSONResponse:
    """Handle tournament domain errors.

    The status code comes from the error class (422, 409, 401/403, 404).
    """
    trace_id = get_request_id(request)

    logger.warning(
        "league_error",
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        trace_id=trace_id,
    )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            trace_id=trace_id,
        ),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Render pydantic input errors in the common error shape."""
    trace_id = get_request_id(request)
    errors = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=create_error_response(
            code=ErrorCode.INVALID_REQUEST.value,
            message="Invalid request",
            details={"errors": errors},
            trace_id=trace_id,
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(
    request: Request, exc: HTTPException
) -> ORJSONResponse:
    """Handle HTTP exceptions."""
    trace_id = get_request_id(request)

    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = dict(exc.detail)
        content["traceId"] = trace_id
    else:
        content = create_error_response(
            code="HTTP_ERROR",
            message=str(exc.detail),
            trace_id=trace_id,
        )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Handle unexpected exceptions."""
    trace_id = get_request_id(request)

    logger.error(
        "unexpected_error",
        error_type=type(exc).__name__,
        error_message=str(exc),
        trace_id=trace_id,
        exc_info=True,
    )

    # Don't expose internal error details in production
    message = "Internal server error"
    if settings.app_debug:
        message = f"{type(exc).__name__}: {exc}"

    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            code=ErrorCode.INTERNAL_ERROR.value,
            message=message,
            trace_id=trace_id,
        ),
    )


# =============================================================================
# Health Check
# =============================================================================


@app.get("/health", tags=["Health"], summary="Health check endpoint")
async def health_check() -> dict[str, Any]:
    """Application health including database connectivity."""
    health_status: dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "services": {"database": "unknown"},
    }

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["services"]["database"] = "healthy"
    except Exception as e:
        health_status["services"]["database"] = f"unhealthy: {e}"
        health_status["status"] = "degraded"
        logger.error("database_health_check_failed", error=str(e))

    return health_status


# =============================================================================
# API Routers
# =============================================================================


API_V1_PREFIX = "/api/v1"

app.include_router(tournaments.router, prefix=API_V1_PREFIX)
app.include_router(admin.router, prefix=API_V1_PREFIX)
