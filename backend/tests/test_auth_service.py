"""
ShutterDesk Backend - Auth Service Unit Tests
===============================================

What:  Tests for AuthService (register, local login, OAuth login, owner bootstrap).
How:   Runs against a throwaway SQLite database; no HTTP layer.

What we test:
    ✅ Registration creates a local client with a bcrypt hash
    ✅ Duplicate email is rejected
    ✅ Unknown email and wrong password share one message
    ✅ Google-only accounts get the "use Google login" hint
    ✅ OAuth creates clients, links local accounts, never grants owner
    ✅ Missing provider email is rejected
    ✅ upsert_owner creates or promotes
"""

import pytest

from shutterdesk.exceptions import AuthenticationError, MissingProviderEmail, ValidationError
from shutterdesk.models.enums import AuthProvider, UserRole
from shutterdesk.schemas.auth import RegisterRequest
from shutterdesk.services.auth_service import (
    GOOGLE_LOGIN_HINT,
    AuthService,
    OAuthProfile,
    verify_password,
)
from shutterdesk.storage import storage


def _google_profile(email="ana@example.com", **overrides):
    fields = dict(
        provider=AuthProvider.GOOGLE,
        provider_id="google-sub-123",
        email=email,
        name="Ana Lens",
        picture="https://lh3.googleusercontent.com/a/photo.jpg",
    )
    fields.update(overrides)
    return OAuthProfile(**fields)


class TestRegister:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_register_creates_local_client(self, db_session):
        payload = RegisterRequest(name="Jane Doe", email="jane@example.com", password="Shutter123")
        user = await self.service.register(db_session, payload)

        assert user.id is not None
        assert user.role == UserRole.CLIENT
        assert user.provider == AuthProvider.LOCAL
        assert user.password_hash != "Shutter123"
        assert verify_password("Shutter123", user.password_hash)

    @pytest.mark.asyncio
    async def test_register_duplicate_email_rejected(self, db_session, make_user):
        await make_user("jane@example.com")
        payload = RegisterRequest(name="Jane Again", email="jane@example.com", password="Shutter123")

        with pytest.raises(ValidationError) as exc_info:
            await self.service.register(db_session, payload)

        assert exc_info.value.message == "An account with this email already exists"
        assert exc_info.value.field == "email"


class TestAuthenticateLocal:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_valid_credentials_return_user(self, db_session, make_user):
        created = await make_user("jane@example.com", password="Shutter123")
        user = await self.service.authenticate_local(db_session, "jane@example.com", "Shutter123")
        assert user.id == created.id

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_look_the_same(self, db_session, make_user):
        await make_user("jane@example.com", password="Shutter123")

        with pytest.raises(AuthenticationError) as unknown:
            await self.service.authenticate_local(db_session, "nobody@example.com", "Shutter123")
        with pytest.raises(AuthenticationError) as wrong:
            await self.service.authenticate_local(db_session, "jane@example.com", "Wrong1234")

        assert unknown.value.message == wrong.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_google_only_account_gets_hint(self, db_session, make_user):
        await make_user(
            "ana@example.com",
            password=None,
            provider=AuthProvider.GOOGLE,
            provider_id="google-sub-123",
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await self.service.authenticate_local(db_session, "ana@example.com", "Whatever1")

        assert exc_info.value.message == GOOGLE_LOGIN_HINT


class TestAuthenticateOAuth:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_new_email_creates_client(self, db_session):
        user = await self.service.authenticate_oauth(db_session, _google_profile())

        assert user.role == UserRole.CLIENT
        assert user.provider == AuthProvider.GOOGLE
        assert user.provider_id == "google-sub-123"
        assert user.password_hash is None
        assert user.name == "Ana Lens"

    @pytest.mark.asyncio
    async def test_role_claim_is_ignored(self, db_session):
        profile = _google_profile(claims={"role": "owner"})
        user = await self.service.authenticate_oauth(db_session, profile)
        assert user.role == UserRole.CLIENT

    @pytest.mark.asyncio
    async def test_name_falls_back_to_email_local_part(self, db_session):
        user = await self.service.authenticate_oauth(db_session, _google_profile(name=None))
        assert user.name == "ana"

    @pytest.mark.asyncio
    async def test_existing_local_account_is_linked(self, db_session, make_user):
        local = await make_user("ana@example.com", role=UserRole.OWNER, password="Shutter123")

        user = await self.service.authenticate_oauth(db_session, _google_profile())

        assert user.id == local.id
        assert user.provider == AuthProvider.GOOGLE
        assert user.provider_id == "google-sub-123"
        # Role and password survive linking
        assert user.role == UserRole.OWNER
        assert verify_password("Shutter123", user.password_hash)

    @pytest.mark.asyncio
    async def test_returning_google_user_gets_fresh_picture(self, db_session):
        first = await self.service.authenticate_oauth(db_session, _google_profile())
        again = await self.service.authenticate_oauth(
            db_session, _google_profile(picture="https://lh3.googleusercontent.com/new.jpg")
        )

        assert again.id == first.id
        assert again.profile_picture == "https://lh3.googleusercontent.com/new.jpg"

    @pytest.mark.asyncio
    async def test_missing_email_rejected(self, db_session):
        with pytest.raises(MissingProviderEmail):
            await self.service.authenticate_oauth(db_session, _google_profile(email=None))


class TestUpsertOwner:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_creates_owner(self, db_session):
        user = await self.service.upsert_owner(
            db_session, "studio@example.com", "Studio Owner", "Shutter123"
        )
        assert user.role == UserRole.OWNER
        assert user.provider == AuthProvider.LOCAL

    @pytest.mark.asyncio
    async def test_promotes_existing_client(self, db_session, make_user):
        client = await make_user("studio@example.com", password="OldPass123")

        await self.service.upsert_owner(db_session, "studio@example.com", "Studio", "NewPass123")

        reloaded = await storage.get_user_by_id(db_session, client.id)
        assert reloaded.role == UserRole.OWNER
        assert verify_password("NewPass123", reloaded.password_hash)
