"""
ShutterDesk Backend - Management CLI Tests
============================================

What:  create-owner and purge-sessions through main(), as an operator runs them.
How:   main() owns its event loop (asyncio.run), so these tests are plain
       functions. The session factory is pointed at a NullPool engine on a
       per-test SQLite file so no connection outlives its loop.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from shutterdesk.database import Base
from shutterdesk.manage import build_parser, main
from shutterdesk.models.enums import UserRole
from shutterdesk.models.session import AuthSession
from shutterdesk.models.user import User
from shutterdesk.services.auth_service import hash_password, verify_password
from shutterdesk.services.session_service import hash_token


@pytest.fixture
def cli_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", poolclass=NullPool)

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_schema())
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    with patch("shutterdesk.manage.async_session_factory", factory), \
         patch("shutterdesk.manage.dispose_engine", AsyncMock()) as dispose:
        yield factory, dispose


def _run(coro_fn, factory):
    async def _inner():
        async with factory() as session:
            return await coro_fn(session)
    return asyncio.run(_inner())


class TestCreateOwner:

    def test_creates_owner_account(self, cli_factory):
        factory, dispose = cli_factory

        code = main([
            "create-owner", "--email", "studio@example.com",
            "--name", "Studio Owner", "--password", "Shutter123",
        ])

        assert code == 0
        dispose.assert_awaited_once()

        async def load(session):
            return (await session.execute(select(User))).scalar_one()
        user = _run(load, factory)
        assert user.role == UserRole.OWNER
        assert verify_password("Shutter123", user.password_hash)

    def test_promotes_existing_client(self, cli_factory):
        factory, _ = cli_factory

        async def seed(session):
            session.add(User(
                email="studio@example.com", name="Studio", role=UserRole.CLIENT,
                password_hash=hash_password("OldPass123"),
            ))
            await session.commit()
        _run(seed, factory)

        code = main([
            "create-owner", "--email", "studio@example.com",
            "--name", "Studio Owner", "--password", "NewPass123",
        ])

        assert code == 0

        async def load(session):
            return (await session.execute(select(User))).scalars().all()
        users = _run(load, factory)
        assert len(users) == 1
        assert users[0].role == UserRole.OWNER
        assert verify_password("NewPass123", users[0].password_hash)

    def test_weak_password_rejected(self, cli_factory):
        factory, dispose = cli_factory

        code = main([
            "create-owner", "--email", "studio@example.com",
            "--name", "Studio Owner", "--password", "weak",
        ])

        assert code == 1
        dispose.assert_awaited_once()

        async def load(session):
            return (await session.execute(select(User))).scalars().all()
        assert _run(load, factory) == []


class TestPurgeSessions:

    def test_removes_expired_sessions(self, cli_factory, capsys):
        factory, _ = cli_factory
        now = datetime.now(timezone.utc)

        async def seed(session):
            user = User(email="jane@example.com", name="Jane", password_hash=hash_password("Shutter123"))
            session.add(user)
            await session.flush()
            session.add_all([
                AuthSession(token_hash=hash_token("old"), user_id=user.id,
                            expires_at=now - timedelta(days=1)),
                AuthSession(token_hash=hash_token("live"), user_id=user.id,
                            expires_at=now + timedelta(days=1)),
            ])
            await session.commit()
        _run(seed, factory)

        assert main(["purge-sessions"]) == 0
        assert "Removed 1 expired sessions" in capsys.readouterr().out

        async def load(session):
            return (await session.execute(select(AuthSession.token_hash))).scalars().all()
        assert _run(load, factory) == [hash_token("live")]


class TestParser:

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
