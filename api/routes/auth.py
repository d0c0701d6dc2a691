"""
Authentication Endpoints
========================

POST /register - redeem a one-time registration token
POST /login    - exchange a secret for a session token

Protocol failures are raised as RegAuthError and rendered by the error
middleware, so these handlers only cover the success path.
"""

import logging

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_auth_service
from api.middleware.rate_limiter import limiter, login_limit, register_limit
from api.models.requests import LoginRequest, RegisterRequest
from api.models.responses import ErrorResponse, LoginResponse, RegisterResponse
from core.auth_service import AuthService


# Set up module logger
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={403: {"model": ErrorResponse}},
    summary="Redeem a registration token"
)
@limiter.limit(register_limit)
async def register(
    request: Request,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
) -> RegisterResponse:
    """
    Bind a login secret to a provisioned client.

    The registration deadline is consumed by the first attempt that
    presents a matching regToken, whether or not that attempt succeeds.
    """
    logger.debug(f"register client={body.client}")
    await service.register(body.client, body.secret, body.reg_token)
    return RegisterResponse(code=200)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Exchange a secret for a session token"
)
@limiter.limit(login_limit)
async def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """Issue a session token valid for the configured TTL."""
    logger.debug(f"login client={body.client}")
    grant = await service.login(body.client, body.secret)
    return LoginResponse(code=200, token=grant.token, ttl_seconds=grant.ttl_seconds)
