"""
EcoStyle API application.

Mounts the catalog, order and PayPal routers under ``/api`` and wraps them
with rate limiting, CORS, security headers and request correlation. Errors
the routers translate themselves arrive as ``{"detail": {...}}``; request
validation failures and unexpected exceptions are shaped here.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from ecostyle.api.deps import close_paypal_client
from ecostyle.api.v1 import orders_router, paypal_router, products_router
from ecostyle.core.config import get_settings
from ecostyle.core.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
)
from ecostyle.core.security import get_csp_headers
from ecostyle.database.connection import dispose_engine

configure_logging()
logger = get_logger(__name__)

settings = get_settings()

REQUEST_ID_HEADER = "X-Request-ID"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup; release the PayPal connection pool and database on exit."""
    logger.info(
        "EcoStyle API starting",
        environment=settings.environment,
        version=settings.app_version,
        paypal_mode=settings.paypal_mode,
        rate_limit=settings.rate_limit if settings.rate_limit_enabled else None,
    )

    yield

    with log_performance(logger, "shutdown"):
        await close_paypal_client()
        await dispose_engine()
    logger.info("EcoStyle API stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Sustainable fashion catalog, orders and PayPal checkout",
    lifespan=lifespan,
    debug=settings.debug,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(get_csp_headers())
    return response


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Correlate each request with an ID and log its outcome.

    The caller's ``X-Request-ID`` is reused when present and echoed back on
    the response either way.
    """
    request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
    route = f"{request.method} {request.url.path}"

    try:
        with log_performance(logger, "request", route=route):
            response = await call_next(request)
    except Exception as e:
        logger.error(
            "Request raised",
            route=route,
            error_type=type(e).__name__,
        )
        raise
    finally:
        clear_context()

    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info("Request handled", route=route, status_code=response.status_code)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies, paths and query strings as 422."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Request validation failed",
        route=f"{request.method} {request.url.path}",
        error_count=len(errors),
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": errors,
            "request_id": get_request_id(),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort 500; the exception is logged, never returned to the caller."""
    logger.error(
        "Unhandled exception",
        route=f"{request.method} {request.url.path}",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "request_id": get_request_id(),
        },
    )


@app.get("/health", tags=["health"], summary="Health check")
@app.get("/api/health", tags=["health"], summary="Health check")
@limiter.exempt
async def health_check(request: Request) -> dict[str, Any]:
    """Liveness probe; answers whenever the process is serving requests."""
    return {
        "status": "OK",
        "message": "EcoStyle API is running",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(products_router, prefix="/api")
app.include_router(orders_router, prefix="/api")
app.include_router(paypal_router, prefix="/api")
