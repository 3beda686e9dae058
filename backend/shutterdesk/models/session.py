"""
ShutterDesk Backend - AuthSession SQLAlchemy Model
====================================================

What:  Server-side session store (`auth_sessions` table).
How:   The browser holds an opaque random token in an HTTP-only cookie.
       Only its SHA-256 digest is stored here, so a leaked table cannot be
       replayed as cookies. The row points at the user id; the user itself
       is re-fetched on every request.

Lifecycle:
    1. Inserted and committed by SessionService.establish() (login / OAuth)
    2. Deleted by SessionService.terminate() (logout)
    3. Expired rows are ignored by resolve() and removed by
       `python -m shutterdesk.manage purge-sessions`
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from shutterdesk.database import Base


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # hex SHA-256 of the cookie token
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<AuthSession(id={self.id}, user_id={self.user_id})>"
