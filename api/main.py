"""
FastAPI Main Application
========================

Main FastAPI application instance with middleware, routes, and lifespan management.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware.error_handler import error_handler_middleware
from api.middleware.rate_limiter import setup_rate_limiting
from api.routes import auth, health
from config import Settings, get_settings
from core.auth_service import create_auth_context


logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler for startup and shutdown.

    Startup:
    - Configures logging
    - Builds the AuthContext (Redis pool, bcrypt hasher, counters)
      and stores it in app.state for dependency injection

    Shutdown:
    - Drains pending counter increments and closes the Redis pool
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info("Starting RegAuth API")
    context = create_auth_context(settings)
    app.state.auth_context = context
    logger.info(
        f"Session TTL {settings.session_ttl_seconds}s, bcrypt rounds {settings.bcrypt_rounds}"
    )

    yield  # Application runs here

    logger.info("Shutting down RegAuth API")
    app.state.auth_context = None
    await context.aclose()


settings = get_settings()

# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    description="""
    Client registration and session issuance.

    ## Flow
    1. A client is provisioned out-of-band with a hashed registration token
       and a registration deadline.
    2. `POST /register` redeems the token once and binds a login secret.
    3. `POST /login` exchanges the secret for a short-lived session token.
    """,
    version="1.0.0",
    lifespan=lifespan
)


# =============================================================================
# Middleware Setup (order matters - first added = outermost)
# =============================================================================

# CORS middleware - allow cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Global error handling middleware
app.middleware("http")(error_handler_middleware)

# Rate limiting setup
setup_rate_limiting(app)


# =============================================================================
# Router Registration
# =============================================================================

# Health check endpoints (no auth required)
app.include_router(health.router, tags=["health"])

# Registration and login, served at the root for wire compatibility
app.include_router(auth.router, tags=["auth"])


@app.get("/", tags=["root"])
async def root():
    """Root endpoint - API information and links."""
    return {
        "message": settings.api_title,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
