"""
ShutterDesk Backend - Session Service
=======================================

What:  Server-side login sessions keyed by an opaque cookie token.
How:   establish() mints a random token, stores its SHA-256 digest with an
       expiry, and commits before returning. resolve() maps a token back to
       a Principal by re-fetching the user, so role changes apply on the
       next request. terminate() deletes the row.

Token format:
    secrets.token_urlsafe(32) - 43 URL-safe characters, 256 bits of entropy.
    The raw token is never logged and never stored.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.config import settings
from shutterdesk.models.enums import UserRole
from shutterdesk.models.user import User
from shutterdesk.storage import storage

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


@dataclass(frozen=True)
class Principal:
    """The requester: a User, or anonymous when `user` is None."""

    user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def role(self) -> Optional[UserRole]:
        return self.user.role if self.user is not None else None


ANONYMOUS = Principal()


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionService:

    async def establish(self, db: AsyncSession, user: User) -> str:
        """
        Create a session for `user` and return the cookie token.

        The row is committed here, so the caller may send the success
        response as soon as this returns.
        """
        token = secrets.token_urlsafe(TOKEN_BYTES)
        await storage.create_auth_session(
            db,
            token_hash=hash_token(token),
            user_id=user.id,
            expires_at=_utcnow() + timedelta(seconds=settings.session_ttl_seconds),
        )
        await db.commit()
        logger.info("Session established for user %d", user.id)
        return token

    async def resolve(self, db: AsyncSession, token: Optional[str]) -> Principal:
        """Unknown, expired or missing tokens all resolve to ANONYMOUS."""
        if not token:
            return ANONYMOUS
        row = await storage.get_live_auth_session(db, hash_token(token), _utcnow())
        if row is None:
            return ANONYMOUS
        user = await storage.get_user_by_id(db, row.user_id)
        if user is None:
            return ANONYMOUS
        return Principal(user=user)

    async def terminate(self, db: AsyncSession, token: Optional[str]) -> None:
        if not token:
            return
        deleted = await storage.delete_auth_session(db, hash_token(token))
        await db.commit()
        if deleted:
            logger.info("Session terminated")

    async def purge_expired(self, db: AsyncSession) -> int:
        removed = await storage.delete_expired_auth_sessions(db, _utcnow())
        await db.commit()
        logger.info("Purged %d expired sessions", removed)
        return removed


session_service = SessionService()
