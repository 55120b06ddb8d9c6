"""In-memory implementation of RemoteStore for testing.

Behaves like a live document database shared by several client sessions:
writes yield to the event loop before committing, committed changes are
pushed to every watcher of the same user collection in commit order, and
server timestamps are stored as native ``datetime`` values.
"""

import asyncio
import copy
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from domain.model.timestamps import to_millis
from domain.model.user import UserProfile
from port.remote_store import (
    SERVER_TIMESTAMP,
    ErrorCallback,
    RemoteStoreError,
    SnapshotCallback,
    check_segment,
)
from port.subscription import Subscription


class _Watcher:
    def __init__(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback | None):
        self.on_snapshot = on_snapshot
        self.on_error = on_error


class FakeRemoteStore:
    def __init__(self, clock: Callable[[], datetime] | None = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.documents: dict[tuple[str, str], dict[str, dict]] = {}
        self.users: dict[str, dict] = {}
        self.fail_on: set[str] = set()
        self.batches: list[tuple[str, str, list[str]]] = []
        self.user_creations = 0
        self._watchers: dict[tuple[str, str], list[_Watcher]] = {}
        self._transaction_lock = asyncio.Lock()

    # ── helpers ──────────────────────────────────────────────

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RemoteStoreError(f"Simulated {operation} failure")

    def _collection(self, user_id: str, collection: str) -> dict[str, dict]:
        key = (check_segment(user_id), check_segment(collection))
        return self.documents.setdefault(key, {})

    def _resolve(self, data: Mapping[str, Any], now: datetime | None = None) -> dict:
        now = now or self.clock()
        return {
            k: now if v is SERVER_TIMESTAMP else copy.deepcopy(v)
            for k, v in data.items()
        }

    def _publish(self, user_id: str, collection: str) -> None:
        snapshot = self.snapshot(user_id, collection)
        for watcher in list(self._watchers.get((user_id, collection), [])):
            watcher.on_snapshot(copy.deepcopy(snapshot))

    def snapshot(self, user_id: str, collection: str) -> list[dict]:
        return [copy.deepcopy(d) for d in self._collection(user_id, collection).values()]

    def fail_watchers(self, user_id: str, collection: str, error: Exception) -> None:
        """Simulate a dropped stream: report the error and stop delivering."""
        watchers = self._watchers.pop((user_id, collection), [])
        for watcher in watchers:
            if watcher.on_error:
                watcher.on_error(error)

    def watcher_count(self, user_id: str, collection: str) -> int:
        return len(self._watchers.get((user_id, collection), []))

    # ── subscription ─────────────────────────────────────────

    def watch(
        self,
        user_id: str,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        self._collection(user_id, collection)
        key = (user_id, collection)
        if 'watch' in self.fail_on:
            if on_error:
                on_error(RemoteStoreError("Simulated watch failure"))
            return Subscription()

        watcher = _Watcher(on_snapshot, on_error)
        self._watchers.setdefault(key, []).append(watcher)
        on_snapshot(self.snapshot(user_id, collection))

        async def _detach() -> None:
            watchers = self._watchers.get(key, [])
            if watcher in watchers:
                watchers.remove(watcher)

        return Subscription(_detach)

    # ── documents ────────────────────────────────────────────

    async def get(self, user_id: str, collection: str, doc_id: str) -> dict | None:
        check_segment(doc_id)
        await asyncio.sleep(0)
        self._check('get')
        doc = self._collection(user_id, collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def create(self, user_id: str, collection: str, doc_id: str, data: Mapping[str, Any]) -> bool:
        check_segment(doc_id)
        await asyncio.sleep(0)
        self._check('create')
        docs = self._collection(user_id, collection)
        if doc_id in docs:
            return False
        docs[doc_id] = self._resolve(data)
        self._publish(user_id, collection)
        return True

    async def set(
        self,
        user_id: str,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        keep: Mapping[str, Any] | None = None,
    ) -> None:
        check_segment(doc_id)
        await asyncio.sleep(0)
        self._check('set')
        docs = self._collection(user_id, collection)
        existing = docs.get(doc_id)
        now = self.clock()
        document = self._resolve(data, now)
        for field, default in (keep or {}).items():
            if existing is not None and field in existing:
                document[field] = existing[field]
            else:
                document[field] = self._resolve({field: default}, now)[field]
        docs[doc_id] = document
        self._publish(user_id, collection)

    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        check_segment(doc_id)
        await asyncio.sleep(0)
        self._check('delete')
        docs = self._collection(user_id, collection)
        if docs.pop(doc_id, None) is not None:
            self._publish(user_id, collection)

    async def set_many(self, user_id: str, collection: str, documents: Mapping[str, Mapping[str, Any]]) -> None:
        for doc_id in documents:
            check_segment(doc_id)
        await asyncio.sleep(0)
        self._check('set_many')
        docs = self._collection(user_id, collection)
        for doc_id, data in documents.items():
            docs[doc_id] = self._resolve(data)
        self.batches.append((user_id, collection, list(documents)))
        self._publish(user_id, collection)

    # ── user root records ────────────────────────────────────

    async def ensure_user(self, user_id: str, email: str | None) -> bool:
        check_segment(user_id)
        async with self._transaction_lock:
            await asyncio.sleep(0)
            self._check('ensure_user')
            if user_id in self.users:
                return False
            self.users[user_id] = self._resolve({
                'uid': user_id,
                'email': email,
                'createdAt': SERVER_TIMESTAMP,
            })
            self.user_creations += 1
            return True

    async def get_user(self, user_id: str) -> UserProfile | None:
        doc = self.users.get(user_id)
        if doc is None:
            return None
        return UserProfile(uid=doc['uid'], email=doc.get('email'), created_at=to_millis(doc.get('createdAt')))
