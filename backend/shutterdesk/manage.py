"""
ShutterDesk Backend - Management CLI
======================================

What:  Operator commands that have no HTTP surface.

Usage:
    python -m shutterdesk.manage create-owner --email studio@example.com \\
        --name "Studio Owner" --password 'S3cure-pass'
    python -m shutterdesk.manage purge-sessions

create-owner is the only way to obtain role=owner: registration and Google
login always create clients. Run against an existing email, it promotes
that account and resets its password.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from shutterdesk.config import settings
from shutterdesk.database import async_session_factory, dispose_engine
from shutterdesk.schemas.auth import RegisterRequest
from shutterdesk.services.auth_service import auth_service
from shutterdesk.services.session_service import session_service

logger = logging.getLogger("shutterdesk.manage")


async def create_owner(email: str, name: str, password: str) -> int:
    # Same strength rules as self-registration
    payload = RegisterRequest(name=name, email=email, password=password)
    async with async_session_factory() as db:
        user = await auth_service.upsert_owner(db, payload.email, payload.name, payload.password)
    logger.info("Owner account ready: id=%d", user.id)
    return user.id


async def purge_sessions() -> int:
    async with async_session_factory() as db:
        return await session_service.purge_expired(db)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shutterdesk.manage", description="ShutterDesk operator commands")
    sub = parser.add_subparsers(dest="command", required=True)

    owner = sub.add_parser("create-owner", help="Create or promote the studio owner account")
    owner.add_argument("--email", required=True)
    owner.add_argument("--name", required=True)
    owner.add_argument("--password", required=True)

    sub.add_parser("purge-sessions", help="Delete expired login sessions")
    return parser


async def _run(args: argparse.Namespace) -> None:
    try:
        if args.command == "create-owner":
            await create_owner(args.email, args.name, args.password)
        elif args.command == "purge-sessions":
            removed = await purge_sessions()
            print(f"Removed {removed} expired sessions")
    finally:
        await dispose_engine()


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(_run(args))
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
