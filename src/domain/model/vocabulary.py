"""Vocabulary domain model."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from domain.model.timestamps import to_millis

TAG_DELIMITER = '#'


def clean_tags(tags: Any) -> list[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    if not tags:
        return []
    seen: list[str] = []
    for tag in tags:
        if isinstance(tag, str):
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
    return seen


@dataclass
class VocabularyEntry:
    """A word or phrase saved to the user's word book.

    ``id`` is the normalized form of ``word`` and doubles as the storage key.
    ``added_at`` is epoch milliseconds and only changes on a rename.
    Tags may encode hierarchy with ``#`` (``topic#travel``); that is a naming
    convention, nothing enforces it.
    """

    CONTENT_FIELDS = ('word', 'context', 'explanation', 'translation', 'tags')

    id: str
    word: str
    context: str = ''
    explanation: str = ''
    translation: str = ''
    added_at: int = 0
    tags: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.word

    @staticmethod
    def content_from(fields: Mapping[str, Any]) -> dict:
        """Overwritable fields of an add/update request, in stored form."""
        return {
            'word': str(fields.get('word') or '').strip(),
            'context': fields.get('context') or '',
            'explanation': fields.get('explanation') or '',
            'translation': fields.get('translation') or '',
            'tags': clean_tags(fields.get('tags')),
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> 'VocabularyEntry':
        return VocabularyEntry(
            id=data['id'],
            word=data.get('word') or '',
            context=data.get('context') or '',
            explanation=data.get('explanation') or '',
            translation=data.get('translation') or '',
            added_at=to_millis(data.get('addedAt')),
            tags=list(data.get('tags') or []),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'word': self.word,
            'context': self.context,
            'explanation': self.explanation,
            'translation': self.translation,
            'addedAt': self.added_at,
            'tags': list(self.tags),
        }

    def tag_paths(self) -> list[list[str]]:
        """Tags split on the hierarchy delimiter."""
        return [tag.split(TAG_DELIMITER) for tag in self.tags]
