"""
FastAPI application entry point for the Standup Order Bot.

This module sets up the main FastAPI application with the messaging
endpoint, health checks, error handling, and startup/shutdown wiring.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import FastAPI, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from standup_bot import __version__
from standup_bot.api.messages import get_orchestrator, router as messages_router, set_orchestrator
from standup_bot.api.middleware import RequestLoggingMiddleware
from standup_bot.config.settings import get_settings
from standup_bot.debounce.debouncer import RequestDebouncer
from standup_bot.debounce.factory import create_debounce_store
from standup_bot.integrations.bot_connector import create_bot_connector_client
from standup_bot.integrations.reply_formatter import ReplyFormatter
from standup_bot.ordering.orchestrator import StandupOrderOrchestrator
from standup_bot.utils.logging import SERVICE_NAME, get_logger, setup_logging

# Logger (initialized after setup_logging is called)
logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Standup Order Bot",
    description=(
        "Chat bot that hands out a random speaking order for standup meetings, "
        "listing the people who are in the call first."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(messages_router)


# Response models
class ComponentStatus(BaseModel):
    """Status of a single system component."""

    status: str  # "healthy", "unhealthy", "degraded"
    message: Optional[str] = None
    response_time_ms: Optional[float] = None


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str  # "healthy", "unhealthy", "degraded"
    version: str
    timestamp: str
    service: str
    components: Optional[Dict[str, ComponentStatus]] = None
    response_time_ms: Optional[float] = None


class InfoResponse(BaseModel):
    """API information response model."""

    name: str
    version: str
    description: str
    documentation: str
    messaging_endpoint: str


@app.get("/", response_model=InfoResponse, tags=["Info"])
async def root() -> InfoResponse:
    """Get basic information about the service."""
    return InfoResponse(
        name="Standup Order Bot",
        version=__version__,
        description="Random speaking order for standups, present members first",
        documentation="/docs",
        messaging_endpoint="/api/messages",
    )


# ---------------------------------------------------------------------------
# Health helpers
# ---------------------------------------------------------------------------

async def _check_debounce_store() -> ComponentStatus:
    """Check the debounce store backend."""
    start = time.perf_counter()
    try:
        store = get_orchestrator().debouncer.store
        healthy = await store.health_check()
        elapsed = (time.perf_counter() - start) * 1000
        store_type = type(store).__name__
        if healthy:
            return ComponentStatus(
                status="healthy",
                message=store_type,
                response_time_ms=round(elapsed, 1),
            )
        return ComponentStatus(
            status="unhealthy",
            message=f"{store_type}: connection failed",
            response_time_ms=round(elapsed, 1),
        )
    except RuntimeError:
        elapsed = (time.perf_counter() - start) * 1000
        return ComponentStatus(
            status="unhealthy",
            message="Orchestrator not initialized",
            response_time_ms=round(elapsed, 1),
        )
    except Exception as exc:
        elapsed = (time.perf_counter() - start) * 1000
        return ComponentStatus(
            status="unhealthy",
            message=str(exc)[:200],
            response_time_ms=round(elapsed, 1),
        )


async def _check_platform() -> ComponentStatus:
    """Report whether outbound platform calls are configured."""
    try:
        platform = get_orchestrator().platform
    except RuntimeError:
        return ComponentStatus(status="unhealthy", message="Orchestrator not initialized")

    if not get_settings().has_bot_access_token:
        return ComponentStatus(
            status="degraded",
            message=f"{type(platform).__name__}: no access token configured",
        )
    return ComponentStatus(status="healthy", message=type(platform).__name__)


def _overall_status(components: Dict[str, ComponentStatus]) -> str:
    """Determine overall status from component statuses."""
    statuses = {c.status for c in components.values()}
    if "unhealthy" in statuses:
        return "unhealthy"
    if "degraded" in statuses:
        return "degraded"
    return "healthy"


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    responses={
        200: {"description": "Service is healthy or degraded"},
        503: {"description": "Service is unhealthy"},
    },
)
async def health_check(response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Reports component-level status for the debounce store and the messaging
    platform client. Returns 503 when a component is unhealthy.
    """
    start = time.perf_counter()

    store_status, platform_status = await asyncio.gather(
        _check_debounce_store(),
        _check_platform(),
    )

    components = {
        "debounce_store": store_status,
        "platform": platform_status,
    }

    overall = _overall_status(components)
    elapsed = (time.perf_counter() - start) * 1000

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        service=SERVICE_NAME,
        components=components,
        response_time_ms=round(elapsed, 1),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception) -> JSONResponse:
    """Log uncaught exceptions and return a 500 response."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=str(request.url.path),
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__,
        },
    )


@app.on_event("startup")
async def startup_event() -> None:
    """
    Application startup event handler.

    - Configures structured logging
    - Validates and logs configuration
    - Creates the debounce store (Redis preferred when configured, memory fallback)
    - Builds the platform client and the orchestrator
    """
    app_settings = get_settings()
    setup_logging(
        log_level=app_settings.log_level,
        environment=app_settings.environment,
    )

    # Re-bind logger after setup
    global logger
    logger = get_logger(__name__)

    logger.info("app_starting", version=__version__)

    try:
        warnings = app_settings.validate_for_startup()
        for warning in warnings:
            logger.warning("config_warning", message=warning)
        app_settings.log_configuration_summary()
    except ValueError as e:
        logger.error("config_validation_failed", error=str(e))
        if app_settings.is_production:
            raise

    store = await create_debounce_store(
        backend=app_settings.debounce_backend,
        redis_url=app_settings.redis_url,
        fallback_to_memory=not app_settings.is_production,
    )

    orchestrator = StandupOrderOrchestrator(
        platform=create_bot_connector_client(app_settings),
        debouncer=RequestDebouncer(store=store, window_ms=app_settings.debounce_window_ms),
        formatter=ReplyFormatter(
            override_domain=app_settings.override_domain,
            override_prefix=app_settings.override_prefix,
            window_ms=app_settings.debounce_window_ms,
        ),
        override_domain=app_settings.override_domain,
        override_prefix=app_settings.override_prefix,
        send_acknowledgement=app_settings.send_acknowledgement,
        help_command=app_settings.help_command,
    )
    set_orchestrator(orchestrator)

    logger.info("app_started", version=__version__)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Close the debounce store and the platform client."""
    logger.info("app_shutting_down")

    try:
        orchestrator = get_orchestrator()
    except RuntimeError:
        logger.info("app_shutdown_complete")
        return

    try:
        await orchestrator.debouncer.store.close()
        logger.info("debounce_store_closed")
    except Exception as e:
        logger.warning("debounce_store_close_error", error=str(e))

    try:
        await orchestrator.platform.close()
        logger.info("platform_client_closed")
    except Exception as e:
        logger.warning("platform_client_close_error", error=str(e))

    set_orchestrator(None)
    logger.info("app_shutdown_complete")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "standup_bot.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
