"""
ShutterDesk Backend - Auth Request/Response Schemas
=====================================================

What:  Contracts for registration, login, logout and the session probe.
Security:
    No schema here has a password_hash attribute. Serializing a User through
    any of them can never leak the hash, whatever the ORM object carries.

Validation messages are user-facing; the first failing one becomes the
`error` string of the 400 envelope.
"""

import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import Field, field_validator

from shutterdesk.models.enums import AuthProvider, UserRole
from shutterdesk.schemas.common import CamelModel


def check_email(value: str) -> str:
    """Syntax-only email check shared by every form; the address is kept as typed."""
    value = value.strip()
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Please enter a valid email address")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(CamelModel):
    """
    What:  Self-registration form (POST /api/register).
    Rules: name >= 2 chars; valid email; password >= 8 chars with at least
           one upper-case letter, one lower-case letter and one digit.
    """
    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", v):
            raise ValueError("Password must contain at least one number")
        return v


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(CamelModel):
    id: int
    email: str
    name: str


class SessionUser(UserSummary):
    role: UserRole


class UserPublic(SessionUser):
    """Everything the dashboards may know about the logged-in user."""
    provider: AuthProvider
    profile_picture: Optional[str] = None


class RegisterResponse(CamelModel):
    success: bool = True
    user: UserSummary


class LoginResponse(CamelModel):
    success: bool = True
    user: SessionUser


class AuthStatusResponse(CamelModel):
    """
    What:  Session probe (GET /api/auth/status).
    `user` is omitted entirely for anonymous callers.
    """
    authenticated: bool
    user: Optional[UserPublic] = Field(default=None)
