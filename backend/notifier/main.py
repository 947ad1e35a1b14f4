"""Main FastAPI application."""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from notifier.api.notifications import router as notifications_router
from notifier.api.scheduling import router as scheduling_router
from notifier.domain.common.errors import AuthorizationError, InvalidRecordError
from notifier.domain.notifications.events import NotificationEventBus
from notifier.infra.db import base
# Import all models to ensure they're registered with Base
from notifier.infra.db.models import (  # noqa: F401
    NotificationErrorModel,
    NotificationMetricModel,
    NotificationModel,
    NotificationScheduleLogModel,
    PendingNotificationModel,
    PushTokenModel,
    UserModel,
)
from notifier.infra.jobs.deferred import DeferredTaskRunner
from notifier.infra.messaging.redis_bus import RedisBus, realtime_listener
from notifier.infra.push.expo_client import ExpoPushClient
from notifier.settings import settings

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    if base.engine is not None:
        try:
            async with base.engine.begin() as conn:
                await conn.run_sync(base.Base.metadata.create_all)
        except Exception as e:
            # Database might not be ready yet; /ready reports it
            logger.warning("Could not connect to database during startup: %s", e)

    app.state.push_gateway = ExpoPushClient()
    app.state.task_runner = DeferredTaskRunner()
    app.state.event_bus = NotificationEventBus()
    app.state.redis_bus = None
    if settings.realtime_enabled:
        redis_bus = RedisBus(settings.redis_url)
        try:
            await redis_bus.connect()
            app.state.event_bus.subscribe(realtime_listener(redis_bus))
            app.state.redis_bus = redis_bus
            logger.info("Realtime notification fan-out enabled (%s)", settings.redis_url)
        except Exception as e:
            logger.warning("Could not connect to Redis during startup: %s", e)

    yield

    # Shutdown: pending receipt checks are dropped
    await app.state.task_runner.cancel_all()
    if app.state.redis_bus is not None:
        await app.state.redis_bus.disconnect()
    if base.engine is not None:
        await base.engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        logger.info("[REQUEST] %s %s", request.method, request.url.path)
        if request.headers:
            headers = dict(request.headers)
            if "authorization" in headers:
                headers["authorization"] = "Bearer ***"
            logger.debug("   Headers: %s", headers)

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "[RESPONSE] %s %s - %s (%.3fs)",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
        )
        return response


app.add_middleware(LoggingMiddleware)


# Domain error handlers: map domain exceptions to correct HTTP status
@app.exception_handler(InvalidRecordError)
async def invalid_record_handler(request: Request, exc: InvalidRecordError):
    """Return 400 when the webhook record is not a valid pending notification."""
    logger.warning("Rejected webhook record: %s", exc.details)
    return JSONResponse(status_code=400, content={"error": exc.message, "details": exc.details})


@app.exception_handler(AuthorizationError)
async def authorization_handler(request: Request, exc: AuthorizationError):
    """Return 401 when the caller did not present the shared secret."""
    logger.warning("Unauthorized %s %s", request.method, request.url.path)
    return JSONResponse(status_code=401, content={"error": exc.message})


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


# Readiness: config, packages, DB, optional Redis and push gateway
@app.get("/ready")
async def readiness():
    """Readiness endpoint: run all checks and return 200 if ready, 503 otherwise."""
    from notifier.readiness import is_ready, run_all_checks_async
    checks = await run_all_checks_async()
    ready, summary = is_ready(checks)
    if ready:
        return {"ready": True, "checks": summary}
    return JSONResponse(
        status_code=503,
        content={"ready": False, "checks": summary},
    )


app.include_router(scheduling_router)
app.include_router(notifications_router)
