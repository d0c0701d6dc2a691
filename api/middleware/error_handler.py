"""
Global Error Handler Middleware
================================

Turns RegAuth exceptions into JSON responses using the status code each
exception carries. Anything else (Redis down, bugs) becomes a 500.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from exceptions import RegAuthError
from config import get_settings


# Set up module logger
logger = logging.getLogger(__name__)


async def error_handler_middleware(request: Request, call_next):
    """
    Global error handling middleware.

    Args:
        request: The incoming request
        call_next: The next middleware/route handler

    Returns:
        Response or JSONResponse with error details
    """
    try:
        response = await call_next(request)
        return response
    except RegAuthError as e:
        logger.info(f"{request.method} {request.url.path} refused: {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    except Exception as e:
        # Unexpected errors - hide details in production
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        settings = get_settings()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "error_type": "InternalServerError",
                "message": "An unexpected error occurred",
                "details": {"error": str(e)} if settings.api_debug else {}
            }
        )
