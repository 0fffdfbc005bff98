"""
SubletConnect: FastAPI application.

Wires together the routers under ``/api``, the structlog setup, request
logging and timeout middleware, and the error envelope
``{"code", "message", "details"}`` that every failure is rendered in.
``/health`` is the liveness probe; ``/health/deep`` checks the database,
Redis and the image bucket.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from subletconnect.config import get_settings
from subletconnect.database import async_session_factory, engine
from subletconnect.errors import (
    InvalidDirection,
    InvalidJson,
    InvalidListingType,
    InvalidMode,
    InvalidSwipedType,
    MissingField,
    MissingUserId,
    SelfSwipe,
    SubletError,
    ValidationFailed,
)
from subletconnect.utils.redis_client import close_redis, connect_redis, get_redis
from subletconnect.utils.storage import get_bucket

# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(0),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger("subletconnect")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info("startup_begin", environment=settings.ENVIRONMENT, log_level=settings.LOG_LEVEL)

    # Opens the first pooled connection so a bad DATABASE_URL fails the boot.
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("database_ready")

    # Match events are best-effort; the API runs without Redis.
    try:
        await connect_redis()
    except Exception:
        logger.exception("redis_connect_failed")

    logger.info("startup_complete")
    yield

    logger.info("shutdown_begin")
    await close_redis()
    await engine.dispose()
    logger.info("shutdown_complete")


# ---------------------------------------------------------------------------
# Middleware classes
# ---------------------------------------------------------------------------

class TimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 in the error envelope when a request overruns
    ``REQUEST_TIMEOUT_SECONDS``."""

    def __init__(self, app, timeout_seconds: float = 30.0) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "request_timeout",
                method=request.method,
                path=request.url.path,
                timeout=self.timeout_seconds,
            )
            return JSONResponse(
                status_code=504,
                content={"code": "Timeout", "message": "Request timed out", "details": []},
            )


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """One ``request_handled`` line per request with status and latency."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_error",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise

        logger.info(
            "request_handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_ENUM_ERRORS: dict[str, type[ValidationFailed]] = {
    "direction": InvalidDirection,
    "swipedType": InvalidSwipedType,
    "swiped_type": InvalidSwipedType,
    "mode": InvalidMode,
    "type": InvalidListingType,
    "listingType": InvalidListingType,
    "listing_type": InvalidListingType,
}


def map_validation_errors(errors: list[dict]) -> SubletError:
    """Collapse pydantic's error list into one domain error.

    Precedence: malformed JSON, missing ``userId`` query, other missing
    fields, bad enum values, self swipe, then a generic ``InvalidRequest``.
    """
    if any(err.get("type") == "json_invalid" for err in errors):
        return InvalidJson()

    missing = [err for err in errors if err.get("type") == "missing"]
    for err in missing:
        loc = tuple(err.get("loc", ()))
        if loc and loc[0] == "query" and loc[-1] == "userId":
            return MissingUserId()
    if missing:
        fields = [str(err["loc"][-1]) for err in missing if err.get("loc")]
        return MissingField("Missing required fields.", details=fields)

    for err in errors:
        if err.get("type") == "enum":
            loc = tuple(err.get("loc", ()))
            error_cls = _ENUM_ERRORS.get(str(loc[-1])) if loc else None
            if error_cls is not None:
                return error_cls()

    if any(err.get("type") == "self_swipe" for err in errors):
        return SelfSwipe()

    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "type": err.get("type"),
            "message": err.get("msg"),
        }
        for err in errors
    ]
    return ValidationFailed(details=details)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

settings = get_settings()

app = FastAPI(
    title="SubletConnect",
    description="Rental matchmaking: swipes, matches and candidate feeds",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- Middleware (applied in reverse order: last added runs first) ---------- #

app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- Exception handlers ---------------------------------------------------- #


@app.exception_handler(SubletError)
async def sublet_error_handler(request: Request, exc: SubletError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        method=request.method,
        path=request.url.path,
        code=exc.kind,
        status=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = map_validation_errors(exc.errors())
    logger.info(
        "request_invalid",
        method=request.method,
        path=request.url.path,
        code=error.kind,
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content=SubletError().to_dict(),
    )



# -- Health-check endpoints ------------------------------------------------ #


@app.get("/health", tags=["health"])
async def health_liveness() -> dict:
    return {"status": "healthy"}


@app.get("/health/deep", tags=["health"])
async def health_deep() -> dict:
    """Readiness: database round-trip, Redis ping and bucket lookup.
    Optional backends report ``not_configured`` instead of failing."""
    settings = get_settings()
    checks: dict = {}

    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "connected"
    except Exception as exc:
        logger.error("health_check_failed", backend="database", error=str(exc))
        checks["database"] = f"error: {exc}"

    redis = get_redis()
    if not settings.REDIS_URL:
        checks["redis"] = "not_configured"
    elif redis is None:
        checks["redis"] = "error: not connected"
    else:
        try:
            await redis.ping()
            checks["redis"] = "connected"
        except Exception as exc:
            logger.error("health_check_failed", backend="redis", error=str(exc))
            checks["redis"] = f"error: {exc}"

    if not settings.GCS_BUCKET_NAME:
        checks["gcs"] = "not_configured"
    else:
        try:
            get_bucket().exists()
            checks["gcs"] = "accessible"
        except Exception as exc:
            logger.error("health_check_failed", backend="gcs", error=str(exc))
            checks["gcs"] = f"error: {exc}"

    degraded = any(value.startswith("error") for value in checks.values())
    return {"status": "degraded" if degraded else "healthy", **checks}


# -- API router ------------------------------------------------------------ #

from subletconnect.api.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api")
