"""Entry repository — the CRUD + live-view facade for one entry collection.

One instance per collection kind (vocabulary, articles). Reads and writes go
to the Local Store while the owner is anonymous and to the user's remote
collection once authenticated. Switching owner tears down every backend
subscription before re-establishing it against the new backend; consumer
handles returned by ``subscribe`` stay valid across the switch.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any, Generic

from domain.model.entry_kind import E, EntryKind
from domain.model.owner import ANONYMOUS, Authenticated, OwnerContext
from domain.model.timestamps import now_millis
from port.local_store import LocalStore
from port.remote_store import RemoteStore
from port.subscription import Subscription
from services.entry_backends import EntryBackend, LocalEntryBackend, RemoteEntryBackend

logger = logging.getLogger(__name__)


class _Listener:
    def __init__(self, on_change: Callable[[list], None], on_error: Callable[[Exception], None] | None):
        self.on_change = on_change
        self.on_error = on_error
        self.backend: EntryBackend | None = None
        self.inner: Subscription | None = None

    async def detach(self) -> None:
        inner, self.inner, self.backend = self.inner, None, None
        if inner is not None:
            await inner.close()


def _same_owner(a: OwnerContext, b: OwnerContext) -> bool:
    if isinstance(a, Authenticated):
        return a.same_user(b)
    return not b.is_authenticated


class EntryRepository(Generic[E]):
    def __init__(
        self,
        kind: EntryKind[E],
        local_store: LocalStore,
        remote_store: RemoteStore,
        owner: OwnerContext = ANONYMOUS,
        clock: Callable[[], int] = now_millis,
    ):
        self.kind = kind
        self.local_store = local_store
        self.remote_store = remote_store
        self.clock = clock
        self._owner = owner
        self._backend = self._backend_for(owner)
        self._listeners: list[_Listener] = []

    @property
    def owner(self) -> OwnerContext:
        return self._owner

    def _backend_for(self, owner: OwnerContext) -> EntryBackend:
        if isinstance(owner, Authenticated):
            return RemoteEntryBackend(self.kind, self.remote_store, owner.user_id)
        return LocalEntryBackend(self.kind, self.local_store, self.clock)

    def _to_entries(self, documents: list[dict]) -> list[E]:
        entries = []
        for doc in documents:
            try:
                entries.append(self.kind.to_entry(doc))
            except (KeyError, TypeError) as e:
                logger.warning("Skipping malformed entry", extra={"kind": self.kind.name, "error": str(e)})
        return self.kind.sort(entries)

    # ── owner switching ───────────────────────────────────────

    async def set_owner(self, owner: OwnerContext) -> None:
        """Point the repository at owner's backend.

        No data is copied here: anonymous → authenticated migration is the
        MigrationCoordinator's job, and authenticated data never flows back
        to the Local Store.
        """
        if _same_owner(self._owner, owner):
            self._owner = owner
            return

        previous = self._owner
        listeners = list(self._listeners)
        try:
            for listener in listeners:
                await self._detach_quietly(listener)
        finally:
            # writes must never reach the previous owner's backend
            self._owner = owner
            self._backend = self._backend_for(owner)
            for listener in list(self._listeners):
                if listener.inner is not None:
                    # subscribed while the old backend was being detached
                    await self._detach_quietly(listener)
                self._attach(listener)

        logger.info("Entry repository owner changed", extra={
            "kind": self.kind.name,
            "from": getattr(previous, 'user_id', None),
            "to": getattr(owner, 'user_id', None),
            "listeners": len(self._listeners),
        })

    # ── subscription ──────────────────────────────────────────

    async def _detach_quietly(self, listener: _Listener) -> None:
        try:
            await listener.detach()
        except Exception:
            logger.exception("Failed to close entry subscription", extra={"kind": self.kind.name})

    def _attach(self, listener: _Listener) -> None:
        backend = self._backend

        def _deliver(documents: list[dict]) -> None:
            # drop late snapshots from a backend we have already left
            if listener.backend is not backend:
                return
            try:
                listener.on_change(self._to_entries(documents))
            except Exception as e:
                logger.exception("Entry subscriber failed", extra={"kind": self.kind.name})
                if listener.on_error:
                    listener.on_error(e)

        def _fail(error: Exception) -> None:
            logger.error("Entry subscription stopped", extra={"kind": self.kind.name, "error": str(error)})
            if listener.on_error and listener.backend is backend:
                listener.on_error(error)

        listener.backend = backend
        listener.inner = backend.watch(_deliver, _fail)

    def subscribe(
        self,
        on_change: Callable[[list[E]], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        """Observe the full collection, most recent activity first.

        ``on_change`` receives the complete snapshot on the initial load and
        after every change. A backend failure is logged and reported to
        ``on_error``; the stream then stays silent until the next owner
        switch or a new subscription. Close the returned handle to stop.
        """
        listener = _Listener(on_change, on_error)
        self._listeners.append(listener)
        self._attach(listener)

        async def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
            await listener.detach()

        return Subscription(_unsubscribe)

    async def snapshots(self) -> AsyncIterator[list[E]]:
        """Async iterator over snapshots; closing the iterator unsubscribes."""
        queue: asyncio.Queue = asyncio.Queue()
        subscription = self.subscribe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            await subscription.close()

    async def close(self) -> None:
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            await self._detach_quietly(listener)

    # ── CRUD ──────────────────────────────────────────────────

    async def get(self, entry_id: str) -> E | None:
        document = await self._backend.get(entry_id)
        return self.kind.to_entry(document) if document else None

    async def add(self, fields: Mapping[str, Any]) -> str:
        """Add a new entry and return its id.

        An entry whose id already exists is left untouched and the call
        still succeeds. A caller-supplied ``id`` that names an existing entry
        counts as a duplicate too. Raises EmptyIdentifierError before any
        write if the label normalizes to nothing.
        """
        content = self.kind.content(fields)
        entry_id = self.kind.entry_id(self.kind.label_of(content))

        known_id = fields.get('id')
        if known_id and known_id != entry_id and await self._backend.get(known_id) is not None:
            logger.debug("Duplicate add ignored", extra={"kind": self.kind.name, "entryId": known_id})
            return known_id

        if await self._backend.insert(entry_id, content):
            logger.info("Entry added", extra={"kind": self.kind.name, "entryId": entry_id})
        else:
            logger.debug("Duplicate add ignored", extra={"kind": self.kind.name, "entryId": entry_id})
        return entry_id

    async def update(self, entry: E) -> str:
        """Persist an edited entry and return its (possibly new) id.

        If the label now normalizes to a different id the entry is renamed:
        the new record is written first, then the old one removed, and its
        timestamps start over. Otherwise every content field is overwritten
        in place and the stored creation timestamp is kept.
        """
        content = self.kind.content(entry.to_dict())
        new_id = self.kind.entry_id(self.kind.label_of(content))

        if new_id != entry.id:
            await self._backend.put(new_id, content)
            if entry.id:
                await self._backend.remove(entry.id)
            logger.info("Entry renamed", extra={"kind": self.kind.name, "from": entry.id, "to": new_id})
            return new_id

        created = entry.to_dict().get(self.kind.created_key) or None
        await self._backend.replace(entry.id, content, created=created)
        logger.debug("Entry updated", extra={"kind": self.kind.name, "entryId": entry.id})
        return entry.id

    async def save(self, fields: Mapping[str, Any], entry_id: str | None = None) -> str:
        """Upsert keyed by the normalized label (or an explicit id).

        An existing entry is updated in place; otherwise a new one is
        created.
        """
        content = self.kind.content(fields)
        entry_id = entry_id or self.kind.entry_id(self.kind.label_of(content))
        created = fields.get(self.kind.created_key) or None
        await self._backend.replace(entry_id, content, created=created)
        logger.debug("Entry saved", extra={"kind": self.kind.name, "entryId": entry_id})
        return entry_id

    async def delete(self, entry_id: str) -> None:
        await self._backend.remove(entry_id)
        logger.info("Entry deleted", extra={"kind": self.kind.name, "entryId": entry_id})
