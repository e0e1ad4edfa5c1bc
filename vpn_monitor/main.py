# vpn_monitor/main.py
"""FastAPI application exposing VPN health and running the background monitors."""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from vpn_monitor.routers import health
from vpn_monitor.services.lookup_service import (
    LookupServiceError,
    close_http_client,
    create_http_client,
)
from vpn_monitor.services.monitor_service import (
    log_task_failure,
    start_change_detector,
    start_periodic_notifier,
)
from vpn_monitor.settings import settings

# Configure structured logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format=(
        '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
        if settings.log_format == "json"
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ),
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage the HTTP client and the background monitors."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    if settings.gluetun_api_url:
        logger.info(f"Using Gluetun API: {settings.gluetun_api_url}")
        if settings.gluetun_api_key:
            logger.info("Gluetun API key configured")
    if not settings.vpn_allowed_asns:
        logger.warning("VPN_ALLOWED_ASNS not set, /check will always report failure")

    await create_http_client()

    tasks = [
        asyncio.create_task(start_periodic_notifier(settings), name="periodic-notifier"),
        asyncio.create_task(start_change_detector(settings), name="change-detector"),
    ]
    for task in tasks:
        task.add_done_callback(log_task_failure)
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await close_http_client()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Verifies that egress traffic leaves through an allowed VPN ASN",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    default_response_class=JSONResponse,
)


# --- Security Headers (applied via middleware for all responses) ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)

    if settings.enable_security_headers:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Cache-Control"] = "no-store"

    # Remove server header for security
    if "server" in response.headers:
        del response.headers["server"]

    return response


# --- Exception Handlers ---
@app.exception_handler(LookupServiceError)
async def lookup_service_error_handler(request: Request, exc: LookupServiceError):
    """Handle lookup and notification service failures."""
    logger.error(f"Lookup service error: {request.url.path} - {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Service Unavailable", "message": "VPN status temporarily unavailable."},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all handler - never expose internal details."""
    logger.exception(f"Unhandled exception: {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error", "message": "An unexpected error occurred."},
    )


# --- Health Check ---
@app.get("/health", tags=["Health"], response_class=JSONResponse)
async def health_check():
    """Liveness probe for the monitor itself (does not check the VPN)."""
    return {"status": "healthy", "version": settings.app_version}


# --- API Routes ---
app.include_router(health.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vpn_monitor.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=settings.debug,
    )
