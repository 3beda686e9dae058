"""
ShutterDesk Backend - Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite file (aiosqlite) with the schema built
       from the ORM metadata; the app's session dependency is pointed at it.
       Stripe and Google are always mocked.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine / session_factory / db_session: throwaway SQLite database
    ├── test_client: HTTPX AsyncClient bound to a fresh app instance
    ├── mock_billing: AsyncMock standing in for the Stripe adapter
    └── make_user / login: account and session helpers
"""

import hashlib
import hmac
import os
import tempfile
import time

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must happen before any shutterdesk import: Settings is read at import time
_TEST_DIR = tempfile.mkdtemp(prefix="shutterdesk_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_not_real"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_not_real"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["BILLING_RETRY_MIN_WAIT"] = "0"
os.environ["BILLING_RETRY_MAX_WAIT"] = "0"
os.environ["BILLING_RETRY_JITTER"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

from http.cookies import SimpleCookie  # noqa: E402
from typing import Dict, Optional  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from shutterdesk.config import settings  # noqa: E402
from shutterdesk.database import Base, get_db_session  # noqa: E402

# models/ has no __init__; import every table so create_all sees it
from shutterdesk.models.client import Client  # noqa: E402,F401
from shutterdesk.models.enums import AuthProvider, UserRole  # noqa: E402
from shutterdesk.models.inquiry import ContactInquiry  # noqa: E402,F401
from shutterdesk.models.invoice import Invoice  # noqa: E402,F401
from shutterdesk.models.portfolio import PortfolioItem  # noqa: E402,F401
from shutterdesk.models.session import AuthSession  # noqa: E402,F401
from shutterdesk.models.user import User  # noqa: E402
from shutterdesk.services.auth_service import hash_password  # noqa: E402
from shutterdesk.services.billing_service import SentInvoice  # noqa: E402

DEFAULT_PASSWORD = "Shutter123"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A session for arranging and asserting state directly."""
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to a fresh app over ASGITransport.

    The lifespan does not run under ASGITransport, so no startup checks
    or logging setup happen here.
    """
    from shutterdesk.main import create_app

    app = create_app()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def session_cookie(response) -> Optional[str]:
    """Session token from a response's Set-Cookie headers, if any."""
    jar = SimpleCookie()
    for header in response.headers.get_list("set-cookie"):
        jar.load(header)
    morsel = jar.get(settings.session_cookie_name)
    return morsel.value if morsel is not None and morsel.value else None


def auth_headers(token: str) -> Dict[str, str]:
    return {"Cookie": f"{settings.session_cookie_name}={token}"}


def signed_header(payload: bytes, secret: str) -> str:
    """Stripe-Signature value for `payload`, built the way Stripe signs deliveries."""
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def make_user(session_factory):
    """
    Factory fixture: insert a user and return it.

    Usage:
        owner = await make_user("owner@example.com", role=UserRole.OWNER)
    """
    async def _make_user(
        email: str,
        password: Optional[str] = DEFAULT_PASSWORD,
        role: UserRole = UserRole.CLIENT,
        name: str = "Test User",
        provider: AuthProvider = AuthProvider.LOCAL,
        provider_id: Optional[str] = None,
    ) -> User:
        async with session_factory() as session:
            user = User(
                email=email,
                name=name,
                role=role,
                provider=provider,
                provider_id=provider_id,
                password_hash=hash_password(password) if password else None,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def login(test_client):
    """
    Factory fixture: log in through the API and return Cookie headers.

    The client's own cookie jar is cleared afterwards so every request in a
    test states its identity explicitly.
    """
    async def _login(email: str, password: str = DEFAULT_PASSWORD) -> Dict[str, str]:
        response = await test_client.post(
            "/api/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        token = session_cookie(response)
        assert token
        test_client.cookies.clear()
        return auth_headers(token)

    return _login


@pytest_asyncio.fixture
async def owner_headers(make_user, login):
    await make_user("owner@example.com", role=UserRole.OWNER, name="Studio Owner")
    return await login("owner@example.com")


@pytest_asyncio.fixture
async def client_headers(make_user, login):
    await make_user("jane@example.com", role=UserRole.CLIENT, name="Jane Doe")
    return await login("jane@example.com")


# ══════════════════════════════════════════════════════════════════════════
# External Service Mocks
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_billing():
    """
    Replaces the Stripe adapter used by the invoice saga.

    Defaults describe the happy path: no existing customer, every call
    succeeds, send returns a hosted URL. Tests override single methods.
    """
    with patch("shutterdesk.services.invoice_service.billing_service") as billing:
        billing.find_customer_by_email = AsyncMock(return_value=None)
        billing.create_customer = AsyncMock(return_value="cus_test_1")
        billing.create_invoice = AsyncMock(side_effect=["in_test_1", "in_test_2", "in_test_3"])
        billing.attach_line_item = AsyncMock(return_value=None)
        billing.finalize_invoice = AsyncMock(return_value=None)

        async def _send(invoice_id, idempotency_key):
            return SentInvoice(
                id=invoice_id,
                hosted_url=f"https://invoice.stripe.com/i/{invoice_id}",
                due_date=None,
            )

        billing.send_invoice = AsyncMock(side_effect=_send)
        billing.delete_draft = AsyncMock(return_value=None)
        billing.void_invoice = AsyncMock(return_value=None)
        yield billing
