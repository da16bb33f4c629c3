"""
Main FastAPI Application

Entry point for the multi-tenant workspace service.
Configures middleware, routes, error handlers, and startup/shutdown events.

Request flow:
    CORS -> process time -> TenantAccessMiddleware -> routes

The tenant access middleware decides whether a request reaches any
non-public route; see middleware/tenant.py.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import re
import time
from contextlib import asynccontextmanager

from workspace_hub import __version__
from workspace_hub.auth.events import get_auth_events
from workspace_hub.config import get_settings
from workspace_hub.database import engine, init_db
from workspace_hub.middleware.tenant import TenantAccessMiddleware
from workspace_hub.utils.logging import setup_logging, get_logger
from workspace_hub.core.exceptions import (
    AuthenticationError,
    BackendUnavailableError,
    TenantAccessDenied,
)

from workspace_hub.api.endpoints import auth, members, projects, site, workspaces

settings = get_settings()

setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=(settings.ENVIRONMENT == "production")
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")

    # Dev only; production schemas are managed by migrations
    if settings.ENVIRONMENT == "development":
        logger.warning("Initializing database tables (dev mode)")
        init_db()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    await get_auth_events().close()
    engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Workspace Hub",
    description="Multi-tenant workspaces addressed by subdomain, with per-request tenant access checks",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

# Middleware added last runs first, so CORS wraps everything else
app.add_middleware(TenantAccessMiddleware)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to track request duration."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


if settings.ENVIRONMENT == "production":
    allowed_origins = [f"https://{settings.ROOT_DOMAIN}"]
    allowed_origin_regex = rf"https://[a-z0-9-]+\.{re.escape(settings.ROOT_DOMAIN)}"
else:
    allowed_origins = [f"http://localhost:{settings.DEV_PORT}"]
    allowed_origin_regex = rf"http://[a-z0-9-]+\.localhost:{settings.DEV_PORT}"

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_origin_regex=allowed_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(TenantAccessDenied)
async def tenant_access_denied_handler(request: Request, exc: TenantAccessDenied):
    """Membership checks that failed inside a route."""
    logger.warning(
        f"Tenant access denied: {exc.detail}",
        extra={"path": request.url.path, "method": request.method}
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "tenant_access_denied"}
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    """Handle authentication errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "authentication_error"},
        headers=exc.headers or {}
    )


@app.exception_handler(BackendUnavailableError)
async def backend_unavailable_handler(request: Request, exc: BackendUnavailableError):
    """Transient lookup failures: retryable, never a denial."""
    logger.error(
        f"Backend unavailable: {request.url.path}",
        extra={"path": request.url.path, "method": request.method}
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "backend_unavailable", "retryable": True},
        headers=exc.headers or {}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler.

    SECURITY: Don't expose internal errors in production.
    Log full details but return generic error to client.
    """
    annotations = getattr(request.state, "tenant_access", None)
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
            "tenant_id": annotations.tenant_id if annotations else None
        }
    )

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc),
                "type": type(exc).__name__,
                "traceback": "See logs for traceback"
            }
        )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": "internal_error"
        }
    )


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": __version__
    }


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Workspace Hub API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "signin": settings.SIGNIN_PATH,
        "workspaces": "/api/account/workspaces"
    }


app.include_router(auth.router)
app.include_router(workspaces.router)
app.include_router(site.router)
app.include_router(projects.router, prefix="/api/v1")
app.include_router(members.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    logger.info("=" * 80)
    logger.info("Workspace Hub")
    logger.info("=" * 80)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug: {settings.DEBUG}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")
    logger.info("=" * 80)

    uvicorn.run(
        "workspace_hub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
