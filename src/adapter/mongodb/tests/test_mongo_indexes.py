import unittest
from unittest.mock import AsyncMock, MagicMock, call

from pymongo.errors import OperationFailure

from adapter.mongodb.indexes import ensure_all_indexes, ensure_listing_index, listing_index

VOCABULARY_KEYS = [('user_id', 1), ('addedAt', -1)]


def _collection(indexes=None):
    collection = MagicMock()
    collection.create_index = AsyncMock()
    collection.drop_index = AsyncMock()
    collection.index_information = AsyncMock(return_value={'_id_': {'key': [('_id', 1)]}, **(indexes or {})})
    return collection


class TestListingIndex(unittest.TestCase):

    def test_orders_by_activity_field(self):
        self.assertEqual(listing_index('vocabulary'), (VOCABULARY_KEYS, 'idx_vocabulary_user_activity'))
        self.assertEqual(listing_index('articles')[0], [('user_id', 1), ('updatedAt', -1)])


class TestEnsureListingIndex(unittest.IsolatedAsyncioTestCase):

    async def test_creates_index(self):
        collection = _collection()
        await ensure_listing_index(collection, 'vocabulary')
        collection.create_index.assert_awaited_once_with(VOCABULARY_KEYS, name='idx_vocabulary_user_activity')

    async def test_same_name_with_old_keys_is_replaced(self):
        collection = _collection({'idx_vocabulary_user_activity': {'key': [('user_id', 1), ('addedAt', 1)]}})
        collection.create_index.side_effect = [OperationFailure('key specs conflict', code=86), None]

        await ensure_listing_index(collection, 'vocabulary')

        collection.drop_index.assert_awaited_once_with('idx_vocabulary_user_activity')
        self.assertEqual(collection.create_index.await_count, 2)

    async def test_same_keys_under_old_name_is_replaced(self):
        collection = _collection({
            'user_id_1_addedAt_-1': {'key': VOCABULARY_KEYS},
            'word_1': {'key': [('word', 1)]},
        })
        collection.create_index.side_effect = [OperationFailure('index exists with different name', code=85), None]

        await ensure_listing_index(collection, 'vocabulary')

        self.assertEqual(collection.drop_index.await_args_list, [call('user_id_1_addedAt_-1')])

    async def test_other_failures_propagate(self):
        collection = _collection()
        collection.create_index.side_effect = OperationFailure('not authorized', code=13)
        with self.assertRaises(OperationFailure):
            await ensure_listing_index(collection, 'vocabulary')
        collection.drop_index.assert_not_called()


class TestEnsureAllIndexes(unittest.IsolatedAsyncioTestCase):

    def _db(self, collections):
        db = MagicMock()
        db.__getitem__.side_effect = collections.__getitem__
        return db

    async def test_one_listing_index_per_entry_collection(self):
        collections = {'vocabulary': _collection(), 'articles': _collection()}

        self.assertTrue(await ensure_all_indexes(self._db(collections)))

        collections['articles'].create_index.assert_awaited_once_with(
            [('user_id', 1), ('updatedAt', -1)], name='idx_articles_user_activity')

    async def test_failure_is_reported_and_other_collections_continue(self):
        collections = {'vocabulary': _collection(), 'articles': _collection()}
        collections['vocabulary'].create_index.side_effect = OperationFailure('not authorized', code=13)

        self.assertFalse(await ensure_all_indexes(self._db(collections)))
        collections['articles'].create_index.assert_awaited_once()


if __name__ == '__main__':
    unittest.main()
