"""
Dependency Injection Functions
==============================

FastAPI dependencies that hand the process-wide AuthContext to routes.
"""

from fastapi import HTTPException, Request, status

from core.auth_service import AuthContext, AuthService


def get_auth_context(request: Request) -> AuthContext:
    """
    Dependency to get the AuthContext from app state.

    The context is created during application startup (lifespan).

    Raises:
        HTTPException: 503 if the context is not initialized
    """
    context = getattr(request.app.state, "auth_context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auth context not initialized. Service is starting up."
        )
    return context


def get_auth_service(request: Request) -> AuthService:
    """Dependency returning an AuthService bound to the shared context."""
    return AuthService(get_auth_context(request))
