"""Session manager — applies identity transitions to the entry repositories.

Consumes the identity provider's event stream one event at a time. Only an
anonymous → authenticated edge starts a migration; repeated events for the
same user and sign-outs just (re)point the repositories.
"""

import asyncio
import logging

from domain.model.owner import ANONYMOUS, Authenticated, OwnerContext
from port.identity import IdentityProvider
from services.entry_repository import EntryRepository
from services.migration_service import MigrationCoordinator, MigrationReport

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(
        self,
        vocabulary: EntryRepository,
        articles: EntryRepository,
        migration: MigrationCoordinator,
    ):
        self.vocabulary = vocabulary
        self.articles = articles
        self.migration = migration
        self.owner: OwnerContext = ANONYMOUS
        self.last_migration: MigrationReport | None = None

    @property
    def repositories(self) -> tuple[EntryRepository, ...]:
        return (self.vocabulary, self.articles)

    async def _switch(self, owner: OwnerContext) -> None:
        for repository in self.repositories:
            await repository.set_owner(owner)

    async def handle(self, owner: OwnerContext) -> None:
        """Apply one identity event."""
        previous, self.owner = self.owner, owner

        if isinstance(owner, Authenticated) and not previous.is_authenticated:
            logger.info("Sign-in detected", extra={"userId": owner.user_id})
            # Migration is scheduled before the switch so no local write can
            # land between the switch and the snapshot read.
            migration = asyncio.ensure_future(self.migration.on_login(owner.user_id, owner.email))
            await self._switch(owner)
            self.last_migration = await migration
            return

        if previous.is_authenticated and not owner.is_authenticated:
            logger.info("Sign-out detected", extra={"userId": getattr(previous, 'user_id', None)})

        await self._switch(owner)

    async def run(self, identity: IdentityProvider) -> None:
        """Process identity events until the stream ends."""
        async for owner in identity.events():
            await self.handle(owner)

    async def close(self) -> None:
        for repository in self.repositories:
            await repository.close()
