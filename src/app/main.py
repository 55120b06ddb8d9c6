"""Sync entry point: sign a user in and move on-device entries into their account.

Usage: python -m app.main <user_id> [email]
"""

import asyncio
import logging
import sys

from app.container import build_session, get_local_store, get_remote_store, shutdown
from domain.model.owner import Authenticated
from port.remote_store import RemoteStoreError
from services.migration_service import MigrationReport
from utils.logging import setup_structured_logging

# Set up structured JSON logging
setup_structured_logging()

logger = logging.getLogger(__name__)


async def sync_account(user_id: str, email: str | None = None) -> MigrationReport | None:
    session = build_session(get_local_store(), await get_remote_store())
    try:
        await session.handle(Authenticated(user_id=user_id, email=email))
        return session.last_migration
    finally:
        await shutdown(session)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        logger.error("Usage: python -m app.main <user_id> [email]")
        return 2

    try:
        report = asyncio.run(sync_account(args[0], args[1] if len(args) > 1 else None))
    except RemoteStoreError as e:
        logger.error("Cannot sync: remote store unavailable", extra={"error": str(e)})
        return 1

    logger.info("Sync finished", extra={"userId": args[0], "migrated": report.migrated, "failed": report.failed})
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
