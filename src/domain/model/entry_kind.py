"""Descriptors for the entry collections a user owns.

An EntryKind tells the generic repository how one collection is keyed,
stamped, ordered and serialized, so vocabulary and articles share a single
CRUD + subscription implementation.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from domain.model.article import Article
from domain.model.identifier import IdMode, require_id
from domain.model.timestamps import to_millis
from domain.model.vocabulary import VocabularyEntry

E = TypeVar('E', VocabularyEntry, Article)


@dataclass(frozen=True)
class EntryKind(Generic[E]):
    name: str
    local_key: str
    entry_type: type[E]
    id_mode: IdMode
    label_key: str
    created_key: str
    order_key: str
    touched_key: str | None = None

    # ── identity ──────────────────────────────────────────

    def entry_id(self, label: str) -> str:
        """Storage key for a label. Raises EmptyIdentifierError."""
        return require_id(label, self.id_mode)

    def label_of(self, fields: Mapping[str, Any]) -> str:
        return str(fields.get(self.label_key) or '')

    # ── document shape ────────────────────────────────────

    def content(self, fields: Mapping[str, Any]) -> dict:
        """Overwritable fields only: never the id or any timestamp."""
        return self.entry_type.content_from(fields)

    def apply_update(self, stored: Mapping[str, Any], changes: Mapping[str, Any]) -> dict:
        """Overwrite content fields of a stored document.

        ``id`` and the creation timestamp always come from ``stored``;
        the touched timestamp is left for the caller to stamp.
        """
        updated = dict(stored)
        updated.update(self.content(changes))
        return updated

    def stamp_keys(self) -> tuple[str, ...]:
        """Timestamps written when a document is (re)created."""
        if self.touched_key:
            return (self.created_key, self.touched_key)
        return (self.created_key,)

    def to_entry(self, document: Mapping[str, Any]) -> E:
        return self.entry_type.from_dict(document)

    def sort(self, entries: list[E]) -> list[E]:
        """Most recent activity first."""
        key = self.order_key

        def activity(entry: E) -> int:
            return to_millis(entry.to_dict().get(key), fallback=0)

        return sorted(entries, key=activity, reverse=True)


VOCABULARY = EntryKind(
    name='vocabulary',
    local_key='vocabulary_app_data_anonymous',
    entry_type=VocabularyEntry,
    id_mode=IdMode.WORD,
    label_key='word',
    created_key='addedAt',
    order_key='addedAt',
)

ARTICLES = EntryKind(
    name='articles',
    local_key='language_app_articles_anonymous',
    entry_type=Article,
    id_mode=IdMode.SLUG,
    label_key='title',
    created_key='createdAt',
    order_key='updatedAt',
    touched_key='updatedAt',
)

ALL_KINDS = (VOCABULARY, ARTICLES)
