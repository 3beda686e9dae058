"""
ShutterDesk Backend - Request Dependencies (Authorization Gate)
=================================================================

What:  FastAPI dependencies that resolve the requester and enforce roles.
How:   get_principal reads the session cookie and resolves it through
       SessionService. require_authenticated / require_role(...) build on
       it and raise the 401/403 exceptions handled in main.py.

Rules:
    - No principal                  → 401 "Not authenticated"
    - Principal with the wrong role → 403 "Access denied"
    - Roles are not hierarchical: an owner is not a client. Each route
      names exactly one role.

Usage:
    @router.get("/api/invoices")
    async def list_invoices(
        principal: Principal = Depends(require_role(UserRole.OWNER)),
        db: AsyncSession = Depends(get_db_session),
    ): ...
"""

from typing import Awaitable, Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.config import settings
from shutterdesk.database import get_db_session
from shutterdesk.exceptions import ForbiddenError, UnauthenticatedError
from shutterdesk.models.enums import UserRole
from shutterdesk.services.session_service import Principal, session_service


def session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name)


async def get_principal(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Principal:
    principal = await session_service.resolve(db, session_token(request))
    request.state.user_id = principal.user.id if principal.user else None
    return principal


async def require_authenticated(
    principal: Principal = Depends(get_principal),
) -> Principal:
    if not principal.is_authenticated:
        raise UnauthenticatedError()
    return principal


def require_role(role: UserRole) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory admitting exactly `role`."""
    if not isinstance(role, UserRole):
        raise TypeError(f"require_role expects a UserRole, got {role!r}")

    async def dependency(principal: Principal = Depends(require_authenticated)) -> Principal:
        if principal.role != role:
            raise ForbiddenError(
                context={"required_role": role.value, "user_id": principal.user.id}
            )
        return principal

    return dependency
