"""Tests for JsonFileLocalStore against a temporary directory."""

import tempfile
import unittest
from pathlib import Path

from adapter.local.json_file_store import JsonFileLocalStore
from port.local_store import LocalStoreError


class TestJsonFileLocalStore(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.directory = Path(self._tmp.name) / 'device'
        self.store = JsonFileLocalStore(self.directory)

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_key_returns_none(self):
        self.assertIsNone(self.store.get('vocabulary_app_data_anonymous'))

    def test_set_then_get(self):
        self.store.set('vocabulary_app_data_anonymous', '[{"id": "hello"}]')
        self.assertEqual(self.store.get('vocabulary_app_data_anonymous'), '[{"id": "hello"}]')
        self.assertTrue((self.directory / 'vocabulary_app_data_anonymous.json').exists())

    def test_set_replaces_whole_value(self):
        self.store.set('k', '[1, 2, 3]')
        self.store.set('k', '[]')
        self.assertEqual(self.store.get('k'), '[]')

    def test_no_temporary_files_left_behind(self):
        self.store.set('k', 'value')
        self.assertEqual([p.name for p in self.directory.iterdir()], ['k.json'])

    def test_keys_are_independent(self):
        self.store.set('vocabulary_app_data_anonymous', '["v"]')
        self.store.set('language_app_articles_anonymous', '["a"]')
        self.store.remove('vocabulary_app_data_anonymous')
        self.assertIsNone(self.store.get('vocabulary_app_data_anonymous'))
        self.assertEqual(self.store.get('language_app_articles_anonymous'), '["a"]')

    def test_remove_missing_key_is_noop(self):
        self.store.remove('never-written')

    def test_invalid_keys_rejected(self):
        for key in ('../escape', 'a/b', '', '.hidden'):
            with self.subTest(key=key):
                with self.assertRaises(LocalStoreError):
                    self.store.set(key, 'x')

    def test_unwritable_directory_raises_local_store_error(self):
        blocker = Path(self._tmp.name) / 'blocker'
        blocker.write_text('not a directory')
        store = JsonFileLocalStore(blocker / 'nested')
        with self.assertRaises(LocalStoreError):
            store.set('k', 'x')


if __name__ == '__main__':
    unittest.main()
