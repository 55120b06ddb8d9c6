"""Unit tests for the stored-timestamp fallback policy."""

import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from bson.timestamp import Timestamp

from domain.model.timestamps import to_millis


class TestToMillis(unittest.TestCase):

    def test_aware_datetime(self):
        value = datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc)
        self.assertEqual(to_millis(value), 1704067201000)

    def test_naive_datetime_is_utc(self):
        self.assertEqual(to_millis(datetime(2024, 1, 1)), 1704067200000)

    def test_bson_timestamp(self):
        self.assertEqual(to_millis(Timestamp(1704067200, 1)), 1704067200000)

    def test_numbers_used_as_is(self):
        self.assertEqual(to_millis(1700000000123), 1700000000123)
        self.assertEqual(to_millis(1700000000123.0), 1700000000123)

    @patch('domain.model.timestamps.now_millis', return_value=42)
    def test_malformed_values_become_current_time(self, _now):
        for value in (None, '2024-01-01', {}, True):
            with self.subTest(value=value):
                self.assertEqual(to_millis(value), 42)

    def test_explicit_fallback(self):
        self.assertEqual(to_millis(None, fallback=0), 0)


if __name__ == '__main__':
    unittest.main()
