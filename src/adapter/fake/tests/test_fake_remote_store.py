"""Unit tests for FakeRemoteStore — verifies RemoteStore contract compliance."""

import asyncio
import unittest
from datetime import datetime, timezone

from adapter.fake.remote_store import FakeRemoteStore
from port.remote_store import SERVER_TIMESTAMP, InvalidPathError, RemoteStoreError


class TestFakeRemoteStore(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        self.store = FakeRemoteStore(clock=lambda: self.now)

    # ── create / set / delete ─────────────────────────────────

    async def test_create_only_when_absent(self):
        self.assertTrue(await self.store.create('u1', 'vocabulary', 'hello', {'id': 'hello', 'word': 'Hello'}))
        self.assertFalse(await self.store.create('u1', 'vocabulary', 'hello', {'id': 'hello', 'word': 'Other'}))
        doc = await self.store.get('u1', 'vocabulary', 'hello')
        self.assertEqual(doc['word'], 'Hello')

    async def test_server_timestamp_resolves_to_datetime(self):
        await self.store.set('u1', 'vocabulary', 'hello', {'id': 'hello', 'addedAt': SERVER_TIMESTAMP})
        doc = await self.store.get('u1', 'vocabulary', 'hello')
        self.assertEqual(doc['addedAt'], self.now)

    async def test_set_keep_preserves_stored_field(self):
        await self.store.set('u1', 'articles', 'a', {'id': 'a', 'createdAt': 1})
        await self.store.set('u1', 'articles', 'a', {'id': 'a', 'content': 'x'}, keep={'createdAt': 99})
        doc = await self.store.get('u1', 'articles', 'a')
        self.assertEqual(doc, {'id': 'a', 'content': 'x', 'createdAt': 1})

    async def test_set_keep_uses_default_when_absent(self):
        await self.store.set('u1', 'articles', 'a', {'id': 'a'}, keep={'createdAt': SERVER_TIMESTAMP})
        doc = await self.store.get('u1', 'articles', 'a')
        self.assertEqual(doc['createdAt'], self.now)

    async def test_users_are_isolated(self):
        await self.store.set('u1', 'vocabulary', 'hello', {'id': 'hello'})
        self.assertIsNone(await self.store.get('u2', 'vocabulary', 'hello'))

    async def test_delete_missing_is_noop(self):
        await self.store.delete('u1', 'vocabulary', 'missing')

    async def test_invalid_path_segments(self):
        with self.assertRaises(InvalidPathError):
            await self.store.set('', 'vocabulary', 'x', {})
        with self.assertRaises(InvalidPathError):
            await self.store.set('u1', 'vocabulary', 'a/b', {})

    async def test_simulated_failure(self):
        self.store.fail_on.add('set')
        with self.assertRaises(RemoteStoreError):
            await self.store.set('u1', 'vocabulary', 'x', {'id': 'x'})

    # ── watch ─────────────────────────────────────────────────

    async def test_watch_delivers_initial_and_subsequent_snapshots(self):
        snapshots = []
        subscription = self.store.watch('u1', 'vocabulary', snapshots.append)
        await self.store.set('u1', 'vocabulary', 'a', {'id': 'a'})
        await self.store.delete('u1', 'vocabulary', 'a')

        self.assertEqual([[d['id'] for d in s] for s in snapshots], [[], ['a'], []])
        await subscription.close()

    async def test_closed_watch_stops_delivery(self):
        snapshots = []
        subscription = self.store.watch('u1', 'vocabulary', snapshots.append)
        await subscription.close()
        await self.store.set('u1', 'vocabulary', 'a', {'id': 'a'})
        self.assertEqual(len(snapshots), 1)
        self.assertEqual(self.store.watcher_count('u1', 'vocabulary'), 0)

    # ── batches and root records ──────────────────────────────

    async def test_set_many_publishes_once(self):
        snapshots = []
        self.store.watch('u1', 'vocabulary', snapshots.append)
        await self.store.set_many('u1', 'vocabulary', {'a': {'id': 'a'}, 'b': {'id': 'b'}})
        self.assertEqual(len(snapshots), 2)
        self.assertEqual(sorted(d['id'] for d in snapshots[-1]), ['a', 'b'])

    async def test_concurrent_ensure_user_creates_one_record(self):
        results = await asyncio.gather(
            self.store.ensure_user('u1', 'a@example.com'),
            self.store.ensure_user('u1', 'a@example.com'),
        )
        self.assertEqual(sorted(results), [False, True])
        self.assertEqual(self.store.user_creations, 1)
        profile = await self.store.get_user('u1')
        self.assertEqual(profile.email, 'a@example.com')


if __name__ == '__main__':
    unittest.main()
