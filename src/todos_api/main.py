from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncIterator, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .audit import AuditPublisher
from .cache import CacheTier, LocalTier, RedisTier, build_redis_client
from .errors import InvalidContentError, TodoAppError
from .logging_config import setup_logging
from .repositories import CacheAsideRepository
from .routers import todos as todos_router
from .services import TodoService
from .settings import Settings, get_settings

logger = structlog.get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Per-user todo lists stored cache-aside in Redis with an in-process fallback.",
    },
]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Connect the remote tier and build the process-wide TodoService.

    A Redis that is down at startup does not block the service: requests use
    the local tier until the connectivity monitor sees Redis again.
    """
    settings: Settings = app.state.settings
    remote: Optional[CacheTier] = app.state.remote_tier
    if remote is None:
        remote = RedisTier(build_redis_client(settings))
        app.state.remote_tier = remote

    if not await remote.connect():
        logger.warning("redis_unavailable_at_startup", fallback="local")

    monitor: Optional[asyncio.Task] = None
    if isinstance(remote, RedisTier):
        monitor = asyncio.create_task(remote.monitor(settings.redis_health_check_interval))
    app.state.redis_monitor = monitor

    repository = CacheAsideRepository(remote, LocalTier(), ttl_seconds=settings.cache_ttl)
    app.state.todo_service = TodoService(repository, AuditPublisher(remote, settings.log_channel))
    logger.info("todos_api_started", cache_ttl=settings.cache_ttl, log_channel=settings.log_channel)
    try:
        yield
    finally:
        try:
            if monitor is not None:
                monitor.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await monitor
        except Exception:
            logger.error("redis_monitor_failed", exc_info=True)
        finally:
            await remote.close()


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, remote_tier: Optional[CacheTier] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: configuration; loaded from the environment when omitted.
        remote_tier: remote cache tier to use instead of a Redis client built from settings.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.environment)

    app = FastAPI(
        title="Todos API",
        description="Per-user todo lists with cache-aside storage and audit events.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.remote_tier = remote_tier

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(TodoAppError)
    async def todo_error_handler(request: Request, exc: TodoAppError) -> JSONResponse:
        """Return ``{"error": message}`` with the exception's status code."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Report unparseable request bodies the same way as invalid content.

        Response format:
            {"error": "Content is required and must be a string"}
        """
        logger.info("request_validation_failed", path=request.url.path, errors=exc.errors())
        return JSONResponse(status_code=400, content={"error": InvalidContentError.message})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # PUBLIC_INTERFACE
    @app.get("/", summary="Service Info", tags=["health"])
    def service_info(request: Request):
        """
        Describe the service and report whether Redis is currently connected.
        """
        remote = request.app.state.remote_tier
        return {
            "service": "todos-api",
            "message": "Cache-Aside Pattern Implementation",
            "endpoints": [
                "GET /todos - List all todos (Cache-Aside pattern)",
                "POST /todos - Create new todo",
                "DELETE /todos/{task_id} - Delete todo",
            ],
            "cache": "Redis with in-process fallback",
            "redis_connected": bool(remote is not None and remote.available),
            "status": "running",
        }

    app.include_router(todos_router.router)
    return app


app = create_app()
