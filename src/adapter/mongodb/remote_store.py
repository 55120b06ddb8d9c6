"""MongoDB implementation of RemoteStore.

Documents of every user share one collection per entry kind and are keyed
``_id = "<user_id>/<doc_id>"`` with ``user_id`` and ``id`` stored alongside.
Writes are update pipelines so SERVER_TIMESTAMP can resolve to ``$$NOW``
on the server; every user-supplied value is wrapped in ``$literal`` so it is
never evaluated as an expression.
"""

import asyncio
import re
from collections.abc import Mapping
from logging import getLogger
from typing import Any

from pymongo import UpdateOne
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from adapter.mongodb import USERS_COLLECTION_NAME
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

logger = getLogger(__name__)

_INTERNAL_FIELDS = ('_id', 'user_id')


def document_key(user_id: str, doc_id: str) -> str:
    return f"{check_segment(user_id)}/{check_segment(doc_id)}"


def _expr(value: Any) -> Any:
    if value is SERVER_TIMESTAMP:
        return '$$NOW'
    return {'$literal': value}


class MongoRemoteStore:
    def __init__(self, db: AsyncDatabase):
        self.db = db
        self.client = db.client

    # ── helpers ──────────────────────────────────────────────

    def _collection(self, name: str):
        return self.db[check_segment(name)]

    def _document_expr(
        self,
        user_id: str,
        doc_id: str,
        data: Mapping[str, Any],
        keep: Mapping[str, Any] | None = None,
    ) -> dict:
        """Aggregation expression producing the full stored document."""
        expr = {field: _expr(value) for field, value in data.items()}
        expr['_id'] = _expr(document_key(user_id, doc_id))
        expr['user_id'] = _expr(user_id)
        expr['id'] = _expr(doc_id)
        for field, default in (keep or {}).items():
            expr[field] = {'$ifNull': [f'${field}', _expr(default)]}
        return expr

    def _to_document(self, doc: dict) -> dict:
        """Strip storage-only fields from a MongoDB document."""
        return {k: v for k, v in doc.items() if k not in _INTERNAL_FIELDS}

    async def _snapshot(self, collection, user_id: str) -> list[dict]:
        docs = await collection.find({'user_id': user_id}).to_list()
        return [self._to_document(doc) for doc in docs]

    # ── subscription ─────────────────────────────────────────

    def watch(
        self,
        user_id: str,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        """Live snapshots via a change stream filtered to the user's documents.

        The stream is opened before the initial read so no commit between the
        two is missed. Any change event triggers a full re-read. A driver
        failure, or an exception raised by on_snapshot, is logged and reported
        once through on_error; the stream then stops.
        """
        coll = self._collection(collection)
        pipeline = [{'$match': {'documentKey._id': {'$regex': f'^{re.escape(check_segment(user_id))}/'}}}]

        async def _run() -> None:
            try:
                async with await coll.watch(pipeline) as stream:
                    on_snapshot(await self._snapshot(coll, user_id))
                    async for _change in stream:
                        on_snapshot(await self._snapshot(coll, user_id))
                return
            except PyMongoError as e:
                logger.error("Remote subscription failed", extra={
                    "userId": user_id, "collection": collection, "error": str(e),
                })
                error = RemoteStoreError(str(e))
            except Exception as e:
                logger.exception("Snapshot delivery failed", extra={
                    "userId": user_id, "collection": collection,
                })
                error = e
            if on_error:
                try:
                    on_error(error)
                except Exception:
                    logger.exception("Subscription error handler failed", extra={"collection": collection})

        return Subscription.for_task(asyncio.create_task(_run()))

    # ── documents ────────────────────────────────────────────

    async def get(self, user_id: str, collection: str, doc_id: str) -> dict | None:
        key = document_key(user_id, doc_id)
        try:
            doc = await self._collection(collection).find_one({'_id': key})
        except PyMongoError as e:
            logger.error("Failed to read document", extra={"key": key, "error": str(e)})
            raise RemoteStoreError(str(e)) from e
        return self._to_document(doc) if doc else None

    async def create(self, user_id: str, collection: str, doc_id: str, data: Mapping[str, Any]) -> bool:
        """Insert-if-absent as a single upsert; an existing document is left untouched."""
        key = document_key(user_id, doc_id)
        pipeline = [{'$replaceWith': {'$cond': {
            'if': {'$eq': [{'$type': '$id'}, 'missing']},
            'then': self._document_expr(user_id, doc_id, data),
            'else': '$$ROOT',
        }}}]
        try:
            result = await self._collection(collection).update_one({'_id': key}, pipeline, upsert=True)
        except PyMongoError as e:
            logger.error("Failed to create document", extra={"key": key, "error": str(e)})
            raise RemoteStoreError(str(e)) from e

        created = result.upserted_id is not None
        logger.debug("Document create", extra={"key": key, "inserted": created})
        return created

    async def set(
        self,
        user_id: str,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        keep: Mapping[str, Any] | None = None,
    ) -> None:
        key = document_key(user_id, doc_id)
        pipeline = [{'$replaceWith': self._document_expr(user_id, doc_id, data, keep)}]
        try:
            await self._collection(collection).update_one({'_id': key}, pipeline, upsert=True)
        except PyMongoError as e:
            logger.error("Failed to write document", extra={"key": key, "error": str(e)})
            raise RemoteStoreError(str(e)) from e
        logger.debug("Document written", extra={"key": key})

    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        key = document_key(user_id, doc_id)
        try:
            await self._collection(collection).delete_one({'_id': key})
        except PyMongoError as e:
            logger.error("Failed to delete document", extra={"key": key, "error": str(e)})
            raise RemoteStoreError(str(e)) from e
        logger.debug("Document deleted", extra={"key": key})

    async def set_many(self, user_id: str, collection: str, documents: Mapping[str, Mapping[str, Any]]) -> None:
        """Bulk upsert inside a transaction so the batch commits all-or-nothing."""
        if not documents:
            return
        coll = self._collection(collection)
        operations = [
            UpdateOne(
                {'_id': document_key(user_id, doc_id)},
                [{'$replaceWith': self._document_expr(user_id, doc_id, data)}],
                upsert=True,
            )
            for doc_id, data in documents.items()
        ]

        async def _commit(session) -> None:
            await coll.bulk_write(operations, ordered=True, session=session)

        try:
            async with self.client.start_session() as session:
                await session.with_transaction(_commit)
        except PyMongoError as e:
            logger.error("Batch write failed", extra={
                "userId": user_id, "collection": collection, "count": len(operations), "error": str(e),
            })
            raise RemoteStoreError(str(e)) from e

        logger.info("Batch write committed", extra={
            "userId": user_id, "collection": collection, "count": len(operations),
        })

    # ── user root records ────────────────────────────────────

    async def ensure_user(self, user_id: str, email: str | None) -> bool:
        """Read-then-create inside a transaction.

        Concurrent sessions racing here conflict on the same ``_id``; the
        driver retries the losing transaction, which then sees the record
        and skips the create.
        """
        check_segment(user_id)
        users = self.db[USERS_COLLECTION_NAME]

        async def _create_if_absent(session) -> bool:
            if await users.find_one({'_id': user_id}, session=session):
                return False
            await users.update_one(
                {'_id': user_id},
                [{'$set': {'uid': _expr(user_id), 'email': _expr(email), 'createdAt': '$$NOW'}}],
                upsert=True,
                session=session,
            )
            return True

        try:
            async with self.client.start_session() as session:
                created = await session.with_transaction(_create_if_absent)
        except PyMongoError as e:
            logger.error("Failed to ensure user record", extra={"userId": user_id, "error": str(e)})
            raise RemoteStoreError(str(e)) from e

        if created:
            logger.info("User record created", extra={"userId": user_id})
        return created

    async def get_user(self, user_id: str) -> UserProfile | None:
        try:
            doc = await self.db[USERS_COLLECTION_NAME].find_one({'_id': user_id})
        except PyMongoError as e:
            logger.error("Failed to get user record", extra={"userId": user_id, "error": str(e)})
            raise RemoteStoreError(str(e)) from e
        if not doc:
            return None
        return UserProfile(uid=doc['uid'], email=doc.get('email'), created_at=to_millis(doc.get('createdAt')))
