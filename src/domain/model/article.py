# domain/model/article.py

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from domain.model.timestamps import to_millis


@dataclass
class Article:
    """Domain model representing a saved article.

    ``id`` is the slug of ``title``; ``created_at`` is set once,
    ``updated_at`` on every write. Both are epoch milliseconds.
    """

    CONTENT_FIELDS = ('title', 'content')

    id: str
    title: str
    content: str = ''
    created_at: int = 0
    updated_at: int = 0

    # ── queries ───────────────────────────────────────────

    @property
    def label(self) -> str:
        return self.title

    @property
    def has_content(self) -> bool:
        return len(self.content) > 0

    # ── mapping ───────────────────────────────────────────

    @staticmethod
    def content_from(fields: Mapping[str, Any]) -> dict:
        return {
            'title': str(fields.get('title') or '').strip(),
            'content': fields.get('content') or '',
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> 'Article':
        return Article(
            id=data['id'],
            title=data.get('title') or '',
            content=data.get('content') or '',
            created_at=to_millis(data.get('createdAt')),
            updated_at=to_millis(data.get('updatedAt')),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }
