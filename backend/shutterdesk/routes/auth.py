"""
ShutterDesk Backend - Auth Route Handlers
===========================================

What:  POST /api/register, POST /api/login, POST /api/logout,
       GET /api/auth/status.
How:   Thin handlers over AuthService and SessionService. The session cookie
       is HTTP-only and written only after the session row is committed.

Cookie:
    name      SESSION_COOKIE_NAME (default shutterdesk_sid)
    max-age   SESSION_TTL_SECONDS
    flags     HttpOnly, SameSite=Lax, Secure when SESSION_COOKIE_SECURE
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.config import settings
from shutterdesk.database import get_db_session
from shutterdesk.deps import get_principal, session_token
from shutterdesk.schemas.auth import (
    AuthStatusResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    SessionUser,
    UserPublic,
    UserSummary,
)
from shutterdesk.schemas.common import ErrorResponse, SuccessResponse
from shutterdesk.services.auth_service import auth_service
from shutterdesk.services.session_service import Principal, session_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Create a client account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    """
    Self-registration always yields role=client, provider=local.
    The new user is not logged in; the frontend follows up with /api/login.
    """
    user = await auth_service.register(db, payload)
    return RegisterResponse(user=UserSummary.model_validate(user))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Log in with email and password",
)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    user = await auth_service.authenticate_local(db, payload.email, payload.password)

    # Rotate: any session the browser already carried is dropped
    await session_service.terminate(db, session_token(request))
    token = await session_service.establish(db, user)
    set_session_cookie(response, token)

    return LoginResponse(user=SessionUser.model_validate(user))


@router.post("/logout", response_model=SuccessResponse, summary="End the current session")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await session_service.terminate(db, session_token(request))
    clear_session_cookie(response)
    return SuccessResponse()


@router.get(
    "/auth/status",
    response_model=AuthStatusResponse,
    response_model_exclude_unset=True,
    summary="Who is logged in",
)
async def auth_status(principal: Principal = Depends(get_principal)) -> AuthStatusResponse:
    if not principal.is_authenticated:
        return AuthStatusResponse(authenticated=False)
    return AuthStatusResponse(
        authenticated=True,
        user=UserPublic.model_validate(principal.user),
    )
