"""
ShutterDesk Backend - Authentication Service
==============================================

What:  Verifies credentials and maintains User identities.
How:   Local accounts use bcrypt hashes (passlib CryptContext). Google
       accounts are matched by email and either created or linked in place.
Who:   Called by the auth and OAuth routes and by the management CLI.

Failure semantics:
    - Unknown email and wrong password raise the same generic
      AuthenticationError, so the response never reveals which accounts exist.
    - The one specific message is for OAuth-only accounts (no password
      hash): the user is told to sign in with Google.
    - Nothing here retries.

bcrypt is CPU-bound, so hashing and verification run in Starlette's
threadpool instead of blocking the event loop.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from shutterdesk.exceptions import AuthenticationError, MissingProviderEmail, ValidationError
from shutterdesk.models.enums import AuthProvider, UserRole
from shutterdesk.models.user import User
from shutterdesk.schemas.auth import RegisterRequest
from shutterdesk.storage import storage

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

GOOGLE_LOGIN_HINT = "Please use Google login for this account"
DUPLICATE_EMAIL = "An account with this email already exists"


@dataclass
class OAuthProfile:
    """
    Identity document returned by an OAuth provider, reduced to what we use.

    `claims` keeps the raw document for logging/debugging. Nothing in it
    (including any role-like claim) influences the account that is created.
    """
    provider: AuthProvider
    provider_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


class AuthService:
    """
    Credential verification and identity maintenance.

    Every method that writes commits before returning; the caller may
    establish a session right after and expects the user row to exist.
    """

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> User:
        """
        Create a local client account.

        Raises:
            ValidationError: email already registered
        """
        if await storage.get_user_by_email(db, payload.email) is not None:
            raise ValidationError(message=DUPLICATE_EMAIL, field="email")

        password_hash = await run_in_threadpool(hash_password, payload.password)
        try:
            user = await storage.create_user(
                db,
                email=payload.email,
                name=payload.name,
                role=UserRole.CLIENT,
                provider=AuthProvider.LOCAL,
                password_hash=password_hash,
            )
            await db.commit()
        except IntegrityError:
            # Concurrent registration for the same email won the insert
            await db.rollback()
            raise ValidationError(message=DUPLICATE_EMAIL, field="email")

        logger.info("Registered user %d (provider=local, role=client)", user.id)
        return user

    async def authenticate_local(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Verify an email/password pair.

        Raises:
            AuthenticationError: unknown email, wrong password, or an account
                that only has a Google identity
        """
        user = await storage.get_user_by_email(db, email)
        if user is None:
            logger.info("Local login rejected: unknown account")
            raise AuthenticationError()

        if not user.password_hash:
            logger.info("Local login rejected for user %d: no password set", user.id)
            raise AuthenticationError(message=GOOGLE_LOGIN_HINT)

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.info("Local login rejected for user %d: bad password", user.id)
            raise AuthenticationError()

        return user

    async def authenticate_oauth(self, db: AsyncSession, profile: OAuthProfile) -> User:
        """
        Resolve an OAuth identity to a User, creating or linking as needed.

        Unknown email:      new user, role forced to client
        Existing local:     provider fields updated; role and password kept
        Existing provider:  returned, profile picture refreshed

        Raises:
            MissingProviderEmail: the provider did not disclose an email
        """
        if not profile.email:
            raise MissingProviderEmail(provider=profile.provider.value)

        user = await storage.get_user_by_email(db, profile.email)

        if user is None:
            try:
                user = await storage.create_user(
                    db,
                    email=profile.email,
                    name=profile.name or profile.email.split("@")[0],
                    role=UserRole.CLIENT,
                    provider=profile.provider,
                    provider_id=profile.provider_id,
                    profile_picture=profile.picture,
                )
                await db.commit()
                logger.info(
                    "Created user %d from %s login (role=client)", user.id, profile.provider.value
                )
                return user
            except IntegrityError:
                await db.rollback()
                user = await storage.get_user_by_email(db, profile.email)
                if user is None:
                    raise

        if user.provider == AuthProvider.LOCAL:
            await storage.update_user_provider(
                db,
                user,
                provider=profile.provider,
                provider_id=profile.provider_id,
                profile_picture=profile.picture,
            )
            logger.info("Linked %s identity to local user %d", profile.provider.value, user.id)
        elif profile.picture and profile.picture != user.profile_picture:
            user.profile_picture = profile.picture

        await db.commit()
        return user

    async def get_user(self, db: AsyncSession, user_id: int) -> Optional[User]:
        return await storage.get_user_by_id(db, user_id)

    async def upsert_owner(
        self, db: AsyncSession, email: str, name: str, password: str
    ) -> User:
        """
        Create the owner account, or promote and re-password an existing one.

        Self-registration and OAuth always yield clients; this is the only
        path to role=owner.
        """
        password_hash = await run_in_threadpool(hash_password, password)
        user = await storage.get_user_by_email(db, email)
        if user is None:
            user = await storage.create_user(
                db,
                email=email,
                name=name,
                role=UserRole.OWNER,
                provider=AuthProvider.LOCAL,
                password_hash=password_hash,
            )
            logger.info("Created owner account %d", user.id)
        else:
            user.role = UserRole.OWNER
            user.password_hash = password_hash
            logger.info("Promoted user %d to owner", user.id)
        await db.commit()
        return user


auth_service = AuthService()
