"""
ShutterDesk Backend - User SQLAlchemy Model
=============================================

What:  ORM model for the `users` table: login identities.
Who:   AuthService (register, local/OAuth authentication), SessionService
       (principal re-fetch), the management CLI (owner bootstrap).

Invariants:
    - provider == local  → password_hash is set
    - provider != local  → provider_id is set (password_hash may be NULL,
      or kept from a local account that later linked Google)
    - email is unique and stored exactly as registered

Lifecycle:
    1. Created by self-registration (role=client, provider=local),
       by first Google login (role=client, provider=google),
       or by `manage create-owner` (role=owner)
    2. Updated in place when a local account links a Google identity
    3. Never deleted
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shutterdesk.database import Base
from shutterdesk.models.enums import AuthProvider, UserRole, string_enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)

    # bcrypt hash; NULL for Google-only accounts. Never serialized.
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        string_enum(UserRole),
        nullable=False,
        default=UserRole.CLIENT,
    )

    provider: Mapped[AuthProvider] = mapped_column(
        string_enum(AuthProvider),
        nullable=False,
        default=AuthProvider.LOCAL,
    )

    # Subject identifier issued by the OAuth provider ("sub" for Google)
    provider_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    profile_picture: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role='{self.role}', provider='{self.provider}')>"
