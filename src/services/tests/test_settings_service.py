import json
import unittest

from adapter.fake.local_store import FakeLocalStore
from domain.model.settings import AppSettings
from port.local_store import LocalStoreError
from services.settings_service import SETTINGS_KEY, load_settings, save_settings


class TestSettings(unittest.TestCase):

    def setUp(self):
        self.store = FakeLocalStore()

    def test_defaults_when_missing(self):
        self.assertEqual(load_settings(self.store), AppSettings())

    def test_save_then_load(self):
        save_settings(self.store, AppSettings(api_key='sk-test'))
        self.assertEqual(json.loads(self.store.data[SETTINGS_KEY]), {'apiKey': 'sk-test'})
        self.assertEqual(load_settings(self.store).api_key, 'sk-test')

    def test_malformed_value_falls_back_to_defaults(self):
        for raw in ('{oops', '[1, 2]', '"text"'):
            with self.subTest(raw=raw):
                self.store.data[SETTINGS_KEY] = raw
                self.assertEqual(load_settings(self.store), AppSettings())

    def test_unreadable_store_falls_back_to_defaults(self):
        self.store.fail_reads = True
        self.assertEqual(load_settings(self.store), AppSettings())

    def test_save_failure_propagates(self):
        self.store.fail_writes = True
        with self.assertRaises(LocalStoreError):
            save_settings(self.store, AppSettings(api_key='sk-test'))


if __name__ == '__main__':
    unittest.main()
