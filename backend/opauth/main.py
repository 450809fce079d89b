"""
Operation Authorization Service - Main FastAPI Application

This is the entry point for the FastAPI application.
It configures middleware, routes, and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .repositories.access_token_repo import AccessTokenRepository
from .repositories.audit_repo import AuditRepository
from .scheduler.token_sweeper import TokenSweeper
from .services.authorization_service import AuthorizationService
from .utils.logger import setup_logging, get_logger

# Setup logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Creates MongoDB indexes
        - Builds the policy registry and authorization service
        - Starts the expired-token sweeper

    Shutdown:
        - Stops the sweeper
        - Closes database connections
    """
    logger.info("Starting Operation Authorization Service...")

    # Indexes back the one-live-token-per-target rule, so failure is fatal
    create_indexes()

    service = AuthorizationService.build(
        settings,
        token_repo=AccessTokenRepository(),
        audit_repo=AuditRepository(),
    )
    app.state.authorization_service = service

    sweeper = TokenSweeper(service)
    sweeper.start()

    logger.info("Application started successfully")

    yield

    logger.info("Shutting down...")
    sweeper.stop()
    close_connection()
    logger.info("Application shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    application = FastAPI(
        title="Operation Authorization Service",
        description="Scoped access tokens and policy checks for sensitive HR and stock operations",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
    )

    _configure_middleware(application)
    register_error_handlers(application)
    _configure_routes(application)

    return application


def _configure_middleware(app: FastAPI) -> None:
    """Configure application middleware."""
    # allow_credentials must be False when allowing all origins
    allow_all = settings.cors_origins.strip() == "*"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )

    app.add_middleware(CorrelationIdMiddleware)


def _configure_routes(app: FastAPI) -> None:
    """Configure application routes."""
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    def health():
        """
        Health check endpoint.

        Returns application health status including database connectivity.
        """
        mongo_health = health_check()
        return {
            "status": "healthy" if mongo_health.get("status") == "healthy" else "degraded",
            "version": VERSION,
            "environment": settings.environment,
            "mongo": mongo_health
        }


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()
