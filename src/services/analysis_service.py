"""Analysis service — turns a text-analysis result into a vocabulary entry."""

import logging

from domain.model.errors import ValidationError
from domain.model.settings import AppSettings
from domain.model.vocabulary import clean_tags
from port.text_analysis import TextAnalysisPort
from services.entry_repository import EntryRepository

logger = logging.getLogger(__name__)


async def build_vocabulary_fields(
    analyzer: TextAnalysisPort,
    settings: AppSettings,
    word: str,
    context: str = '',
    tags: list[str] | None = None,
) -> dict:
    """Analyze word and return the fields for ``EntryRepository.add``.

    User-supplied tags come first, followed by the analyzer's suggestions.
    Raises ValidationError when no API key is configured; analyzer errors
    propagate unchanged.
    """
    if not settings.api_key:
        raise ValidationError("An API key is required for text analysis")

    analysis = await analyzer.analyze(word, settings.api_key)
    return {
        'word': word,
        'context': context,
        'explanation': analysis.explanation,
        'translation': analysis.translation,
        'tags': clean_tags(list(tags or []) + analysis.suggested_tags),
    }


async def add_analyzed_word(
    repo: EntryRepository,
    analyzer: TextAnalysisPort,
    settings: AppSettings,
    word: str,
    context: str = '',
    tags: list[str] | None = None,
) -> str:
    """Analyze word, then add it to the vocabulary collection. Returns the entry id.

    A word already in the collection is not re-analyzed.
    """
    entry_id = repo.kind.entry_id(word)
    if await repo.get(entry_id) is not None:
        logger.debug("Word already saved, skipping analysis", extra={"entryId": entry_id})
        return entry_id

    fields = await build_vocabulary_fields(analyzer, settings, word, context, tags)
    return await repo.add(fields)
