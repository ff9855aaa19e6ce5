"""
Pizza Gateway — Login Route
============================

What:  POST /auth/login exchanges a username and password for a bearer token.
Who:   Mounted only when AUTH_STRATEGY=jwt.

Request:  {"username": "...", "password": "..."}
Response: {"token": "<jwt>"}   (valid for JWT_EXPIRES_MINUTES, default 60)
"""

import logging

from fastapi import APIRouter, Depends

from pizza_gateway.context import ServiceContext, get_context
from pizza_gateway.schemas.common import ErrorResponse, LoginRequest, TokenResponse
from pizza_gateway.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Missing username or password", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Exchange credentials for a bearer token",
)
async def login(
    body: LoginRequest,
    context: ServiceContext = Depends(get_context),
) -> TokenResponse:
    token = await auth_service.login(
        db=context.database,
        authenticator=context.authenticator,
        username=body.username,
        password=body.password,
    )
    return TokenResponse(token=token)
