"""
Parts Storefront: Bulk Order API

Paste a part list, validate it against the catalog, fix what did not
match, then hand the good rows to the cart.

Run locally:
    python main.py
"""

from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from config import settings, check_connection
from exceptions import AppError

logging.basicConfig(format="%(message)s", level=settings.log_level)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log catalog reachability on the way up; close bulk sessions on the way down."""
    from services import bulk_session_store

    catalog = check_connection()
    logger.info(
        "application_starting",
        environment=settings.environment,
        catalog_status=catalog["status"],
        parts=catalog.get("parts_count"),
        validation_path=catalog.get("validation_path"),
        error=catalog.get("error"),
    )

    yield

    open_sessions = bulk_session_store.session_count()
    bulk_session_store.clear_sessions()
    logger.info("application_shutting_down", closed_sessions=open_sessions)


app = FastAPI(
    title="Parts Storefront Bulk Orders",
    description="Bulk part number entry, catalog validation and cart handoff",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
)


@app.get("/health")
async def health_check():
    """Catalog reachability plus the number of open bulk sessions."""
    from services import bulk_session_store

    catalog = check_connection()
    return {
        "status": "healthy" if catalog["status"] == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
        "catalog": catalog,
        "bulk_sessions": bulk_session_store.session_count(),
    }


@app.get("/")
async def root():
    return {
        "name": "Parts Storefront Bulk Order API",
        "version": API_VERSION,
        "health": "/health",
        "endpoints": {
            "bulk_orders": "/api/bulk-orders",
            "cart": "/api/cart",
        },
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    logger.warning("app_error", path=request.url.path, code=exc.code, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the same envelope as application errors."""
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": "REQUEST_INVALID",
                "message": "Request body is invalid",
                "details": {"errors": jsonable_encoder(exc.errors(), exclude={"ctx"})},
                "timestamp": datetime.utcnow().isoformat(),
            }
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": {"error": str(exc)} if settings.debug else {},
                "timestamp": datetime.utcnow().isoformat(),
            }
        },
    )


# After structlog is configured
from routes.bulk_orders import router as bulk_orders_router
from routes.cart import router as cart_router

app.include_router(bulk_orders_router)
app.include_router(cart_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
