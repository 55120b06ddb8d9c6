"""Migration coordinator — moves anonymous entries into a new account.

Runs once per anonymous → authenticated edge:
ensure root record → read local snapshot → batched remote write → clear local.

The steps are not atomic as a whole. A run interrupted after the batch
commits but before the local clear simply repeats on the next sign-in;
documents are keyed by entry id, so the repeat overwrites instead of
duplicating.
"""

import logging
from dataclasses import dataclass, field

from domain.model.entry_kind import ALL_KINDS, EntryKind
from port.local_store import LocalStore, LocalStoreError
from port.remote_store import SERVER_TIMESTAMP, RemoteStore, RemoteStoreError
from services.local_snapshot import read_snapshot

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    """Outcome of one on_login run."""
    user_id: str
    root_created: bool = False
    migrated: dict[str, int] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.migrated.values())


class MigrationCoordinator:
    def __init__(
        self,
        local_store: LocalStore,
        remote_store: RemoteStore,
        kinds: tuple[EntryKind, ...] = ALL_KINDS,
    ):
        self.local_store = local_store
        self.remote_store = remote_store
        self.kinds = kinds

    async def on_login(self, user_id: str, email: str | None = None) -> MigrationReport:
        """Initialize the user's root record and migrate every local collection.

        Never raises for storage failures: each failing step is logged and
        recorded in the report, and the remaining steps still run.
        """
        report = MigrationReport(user_id=user_id)
        report.root_created = await self._ensure_root(user_id, email)

        for kind in self.kinds:
            try:
                count = await self._migrate_kind(user_id, kind)
            except (RemoteStoreError, LocalStoreError) as e:
                logger.error("Failed to migrate local data", extra={
                    "userId": user_id, "kind": kind.name, "error": str(e),
                })
                report.failed.append(kind.name)
                continue
            if count:
                report.migrated[kind.name] = count

        logger.info("Login initialization finished", extra={
            "userId": user_id,
            "rootCreated": report.root_created,
            "migrated": report.migrated,
            "failed": report.failed,
        })
        return report

    async def _ensure_root(self, user_id: str, email: str | None) -> bool:
        # The root record is advisory metadata; entry migration does not depend on it.
        try:
            return await self.remote_store.ensure_user(user_id, email)
        except RemoteStoreError as e:
            logger.error("Failed to create user record", extra={"userId": user_id, "error": str(e)})
            return False

    async def _migrate_kind(self, user_id: str, kind: EntryKind) -> int:
        documents = read_snapshot(self.local_store, kind)
        if not documents:
            return 0

        logger.info("Migrating local entries", extra={
            "userId": user_id, "kind": kind.name, "count": len(documents),
        })

        batch: dict[str, dict] = {}
        for document in documents:
            migrated = dict(document)
            # Anonymous-session wall clock is not authoritative once in the cloud.
            migrated[kind.created_key] = SERVER_TIMESTAMP
            batch[migrated['id']] = migrated

        await self.remote_store.set_many(user_id, kind.name, batch)
        self.local_store.remove(kind.local_key)

        logger.info("Migration complete", extra={"userId": user_id, "kind": kind.name, "count": len(batch)})
        return len(batch)
