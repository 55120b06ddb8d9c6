"""Tests for the analyze-then-save vocabulary flow."""

import unittest

from adapter.fake.local_store import FakeLocalStore
from adapter.fake.remote_store import FakeRemoteStore
from adapter.fake.text_analysis import FakeTextAnalyzer
from domain.model.entry_kind import VOCABULARY
from domain.model.errors import ValidationError
from domain.model.settings import AppSettings
from port.text_analysis import TextAnalysis, TextAnalysisRateLimitError
from services.analysis_service import add_analyzed_word, build_vocabulary_fields
from services.entry_repository import EntryRepository

SETTINGS = AppSettings(api_key='sk-test')


class TestBuildVocabularyFields(unittest.IsolatedAsyncioTestCase):

    async def test_merges_user_and_suggested_tags(self):
        analyzer = FakeTextAnalyzer(TextAnalysis(
            explanation='a greeting',
            translation='你好',
            suggested_tags=['topic#greetings', 'basic'],
        ))

        fields = await build_vocabulary_fields(analyzer, SETTINGS, 'Hello', 'Hello there', ['basic', 'mine'])

        self.assertEqual(fields['explanation'], 'a greeting')
        self.assertEqual(fields['translation'], '你好')
        self.assertEqual(fields['tags'], ['basic', 'mine', 'topic#greetings'])
        self.assertEqual(analyzer.calls, [{'text': 'Hello', 'credential': 'sk-test'}])

    async def test_requires_api_key(self):
        analyzer = FakeTextAnalyzer()
        with self.assertRaises(ValidationError):
            await build_vocabulary_fields(analyzer, AppSettings(), 'Hello')
        self.assertEqual(analyzer.calls, [])

    async def test_analyzer_errors_propagate(self):
        analyzer = FakeTextAnalyzer(error=TextAnalysisRateLimitError('slow down'))
        with self.assertRaises(TextAnalysisRateLimitError):
            await build_vocabulary_fields(analyzer, SETTINGS, 'Hello')


class TestAddAnalyzedWord(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.repo = EntryRepository(VOCABULARY, FakeLocalStore(), FakeRemoteStore())
        self.analyzer = FakeTextAnalyzer(TextAnalysis(explanation='exp', translation='tr'))

    async def test_adds_analyzed_entry(self):
        entry_id = await add_analyzed_word(self.repo, self.analyzer, SETTINGS, 'World!', 'Hello World!')

        self.assertEqual(entry_id, 'world')
        entry = await self.repo.get('world')
        self.assertEqual((entry.word, entry.context, entry.explanation), ('World!', 'Hello World!', 'exp'))

    async def test_existing_word_is_not_reanalyzed(self):
        await self.repo.add({'word': 'world'})

        entry_id = await add_analyzed_word(self.repo, self.analyzer, SETTINGS, 'World')

        self.assertEqual(entry_id, 'world')
        self.assertEqual(self.analyzer.calls, [])


if __name__ == '__main__':
    unittest.main()
