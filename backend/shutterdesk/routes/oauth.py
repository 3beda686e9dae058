"""
ShutterDesk Backend - Google OAuth Route Handlers
===================================================

What:  GET /api/auth/google (start) and GET /api/auth/google/callback.
When:  Mounted by create_app() only when Google credentials are configured.

Flow:
    1. /api/auth/google stores a random `state` in a short-lived HTTP-only
       cookie and redirects to Google's consent screen.
    2. Google redirects back to /callback with `code` and `state`.
    3. The state must match the cookie; the code is exchanged for the
       profile; the profile is resolved to a User; a session is established.
    4. Redirect to /owner-dashboard or /client-dashboard by role.

Any failure in 2-3 redirects to /login?error=oauth_failed and is logged.
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.config import settings
from shutterdesk.database import get_db_session
from shutterdesk.exceptions import ShutterDeskError
from shutterdesk.models.enums import UserRole
from shutterdesk.routes.auth import set_session_cookie
from shutterdesk.services.auth_service import auth_service
from shutterdesk.services.google_oauth import google_oauth
from shutterdesk.services.session_service import session_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

STATE_COOKIE = "shutterdesk_oauth_state"
STATE_TTL_SECONDS = 600
FAILURE_REDIRECT = "/login?error=oauth_failed"

DASHBOARDS = {
    UserRole.OWNER: "/owner-dashboard",
    UserRole.CLIENT: "/client-dashboard",
}


def _failure() -> RedirectResponse:
    response = RedirectResponse(FAILURE_REDIRECT, status_code=302)
    response.delete_cookie(STATE_COOKIE, path="/api/auth")
    return response


@router.get("/google", summary="Start Google sign-in")
async def google_login() -> RedirectResponse:
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(google_oauth.authorization_url(state), status_code=302)
    response.set_cookie(
        key=STATE_COOKIE,
        value=state,
        max_age=STATE_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/api/auth",
    )
    return response


@router.get("/google/callback", summary="Google sign-in callback")
async def google_callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    expected_state = request.cookies.get(STATE_COOKIE)

    if error or not code:
        logger.warning("Google sign-in aborted: %s", error or "missing code")
        return _failure()
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning("Google sign-in rejected: state mismatch")
        return _failure()

    try:
        profile = await google_oauth.fetch_profile(code)
        user = await auth_service.authenticate_oauth(db, profile)
        token = await session_service.establish(db, user)
    except ShutterDeskError as e:
        logger.warning("Google sign-in failed: %s", e.message)
        return _failure()
    except SQLAlchemyError:
        await db.rollback()
        logger.error("Google sign-in failed: database error", exc_info=True)
        return _failure()

    response = RedirectResponse(DASHBOARDS.get(user.role, "/"), status_code=302)
    response.delete_cookie(STATE_COOKIE, path="/api/auth")
    set_session_cookie(response, token)
    return response
