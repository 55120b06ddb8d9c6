"""Storage backends behind EntryRepository, one per owner mode.

Both expose the same document-level operations so the repository's
dedup/rename/timestamp rules are written once:

- ``insert``: create if absent, stamp every timestamp.
- ``put``: overwrite with fresh timestamps (the insert half of a rename).
- ``replace``: in-place write; the stored creation timestamp always wins,
  ``created`` is used only when nothing is stored yet.
- ``remove``: delete, no-op if absent.
"""

import logging
from collections.abc import Callable
from typing import Any, Protocol

from domain.model.entry_kind import EntryKind
from domain.model.timestamps import now_millis
from port.local_store import LocalStore
from port.remote_store import SERVER_TIMESTAMP, ErrorCallback, RemoteStore, SnapshotCallback
from port.subscription import Subscription
from services.local_snapshot import read_snapshot, write_snapshot

logger = logging.getLogger(__name__)


class EntryBackend(Protocol):
    def watch(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription: ...
    async def get(self, entry_id: str) -> dict | None: ...
    async def insert(self, entry_id: str, content: dict) -> bool: ...
    async def put(self, entry_id: str, content: dict) -> None: ...
    async def replace(self, entry_id: str, content: dict, created: Any = None) -> None: ...
    async def remove(self, entry_id: str) -> None: ...


class LocalEntryBackend:
    """Anonymous owner: the collection is held in memory and every change
    rewrites the full snapshot to the Local Store.

    A change is applied to a copy and only becomes visible once the snapshot
    write succeeds; a failed write raises LocalStoreError and leaves memory,
    storage and watchers as they were.
    """

    def __init__(self, kind: EntryKind, store: LocalStore, clock: Callable[[], int] = now_millis):
        self.kind = kind
        self.store = store
        self.clock = clock
        self._documents: list[dict] | None = None
        self._watchers: list[SnapshotCallback] = []

    @property
    def documents(self) -> list[dict]:
        if self._documents is None:
            self._documents = read_snapshot(self.store, self.kind)
        return self._documents

    def _index(self, entry_id: str) -> int | None:
        for i, doc in enumerate(self.documents):
            if doc.get('id') == entry_id:
                return i
        return None

    def _commit(self, documents: list[dict]) -> None:
        write_snapshot(self.store, self.kind, documents)
        self._documents = documents
        for on_snapshot in list(self._watchers):
            on_snapshot([dict(d) for d in documents])

    def _fresh(self, entry_id: str, content: dict) -> dict:
        now = self.clock()
        document = {'id': entry_id, **content}
        for key in self.kind.stamp_keys():
            document[key] = now
        return document

    def watch(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription:
        self._watchers.append(on_snapshot)
        on_snapshot([dict(d) for d in self.documents])

        async def _detach() -> None:
            if on_snapshot in self._watchers:
                self._watchers.remove(on_snapshot)

        return Subscription(_detach)

    async def get(self, entry_id: str) -> dict | None:
        index = self._index(entry_id)
        return dict(self.documents[index]) if index is not None else None

    async def insert(self, entry_id: str, content: dict) -> bool:
        if self._index(entry_id) is not None:
            return False
        self._commit([self._fresh(entry_id, content), *self.documents])
        return True

    async def put(self, entry_id: str, content: dict) -> None:
        documents = [d for d in self.documents if d.get('id') != entry_id]
        self._commit([self._fresh(entry_id, content), *documents])

    async def replace(self, entry_id: str, content: dict, created: Any = None) -> None:
        documents = list(self.documents)
        index = self._index(entry_id)
        if index is None:
            document = self._fresh(entry_id, content)
            if created is not None:
                document[self.kind.created_key] = created
            documents.insert(0, document)
        else:
            document = self.kind.apply_update(documents[index], content)
            if self.kind.touched_key:
                document[self.kind.touched_key] = self.clock()
            documents[index] = document
        self._commit(documents)

    async def remove(self, entry_id: str) -> None:
        index = self._index(entry_id)
        if index is None:
            return
        self._commit([d for i, d in enumerate(self.documents) if i != index])


class RemoteEntryBackend:
    """Authenticated owner: one document per entry under the user's path."""

    def __init__(self, kind: EntryKind, store: RemoteStore, user_id: str):
        self.kind = kind
        self.store = store
        self.user_id = user_id

    def _fresh(self, entry_id: str, content: dict) -> dict:
        document = {'id': entry_id, **content}
        for key in self.kind.stamp_keys():
            document[key] = SERVER_TIMESTAMP
        return document

    def watch(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Subscription:
        return self.store.watch(self.user_id, self.kind.name, on_snapshot, on_error)

    async def get(self, entry_id: str) -> dict | None:
        return await self.store.get(self.user_id, self.kind.name, entry_id)

    async def insert(self, entry_id: str, content: dict) -> bool:
        return await self.store.create(self.user_id, self.kind.name, entry_id, self._fresh(entry_id, content))

    async def put(self, entry_id: str, content: dict) -> None:
        await self.store.set(self.user_id, self.kind.name, entry_id, self._fresh(entry_id, content))

    async def replace(self, entry_id: str, content: dict, created: Any = None) -> None:
        document = {'id': entry_id, **content}
        if self.kind.touched_key:
            document[self.kind.touched_key] = SERVER_TIMESTAMP
        keep = {self.kind.created_key: created if created is not None else SERVER_TIMESTAMP}
        await self.store.set(self.user_id, self.kind.name, entry_id, document, keep=keep)

    async def remove(self, entry_id: str) -> None:
        await self.store.delete(self.user_id, self.kind.name, entry_id)
