"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (CORS, request context)
  - Mount the auth router under /api/v1
  - Expose health check and metrics endpoints

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - RequestContextMiddleware: Request ID and logging context
  - auth_routes.router: register, login, change-password, logout, me

Constraints:
  - CORS configurable via ALLOWED_ORIGINS env var (comma-separated)
  - The connection pool only exists when DATABASE_URL is set

Notes:
  - Middleware order matters: RequestContext → CORS → routes
  - /healthz follows Kubernetes health check convention
  - /metrics exposes Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .auth_routes import router as auth_router
from .config import get_settings
from .container import get_user_repository
from .exception_handlers import register_exception_handlers
from .infrastructure.db.pool import close_pool, init_pool
from .logger import logger
from .metrics import get_metrics_response
from .middleware import RequestContextMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and initializes pool."""
    # This will raise ValidationError if env vars are missing/invalid
    settings = get_settings()

    if settings.database_url:
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            statement_timeout_ms=settings.db_statement_timeout_ms,
            lock_timeout_ms=settings.db_lock_timeout_ms,
        )

    logger.info(
        "Gym backend starting up",
        extra={
            "app_env": settings.app_env,
            "user_store": "postgres" if settings.database_url else "memory",
            "auth_max_failed_attempts": settings.auth_max_failed_attempts,
            "auth_lock_duration_seconds": settings.auth_lock_duration_seconds,
            "jwt_access_ttl_minutes": settings.jwt_access_ttl_minutes,
        },
    )
    yield

    close_pool()
    logger.info("Gym backend shutting down")


def create_app() -> FastAPI:
    """R: Build the application (tests call this for an isolated instance)."""
    settings = get_settings()

    app = FastAPI(
        title="Gym Backend API",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "auth",
                "description": "Registration, login and password change (JWT)",
            },
        ],
    )

    app.add_middleware(RequestContextMiddleware)

    # R: Configure CORS with secure defaults
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
    )

    app.include_router(auth_router, prefix="/api/v1")
    register_exception_handlers(app)

    @app.get("/healthz")
    def healthz(request: Request):
        """
        R: Health check that verifies the user store.

        Returns:
            ok: True if the store answered
            db: "connected" or "disconnected"
            request_id: Correlation ID for this request
        """
        db_status = "disconnected"
        try:
            if get_user_repository().ping():
                db_status = "connected"
        except Exception as e:
            logger.warning("Health check: user store unavailable", extra={"error": str(e)})

        return {
            "ok": db_status == "connected",
            "db": db_status,
            "request_id": getattr(request.state, "request_id", None),
        }

    @app.get("/metrics")
    def metrics():
        """R: Expose Prometheus metrics."""
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)

    return app


app = create_app()
