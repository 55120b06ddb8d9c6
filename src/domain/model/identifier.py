"""Canonical identifiers derived from human-entered labels.

Every stored entry is keyed by the normalized form of its label (the word of a
vocabulary entry, the title of an article), so the same label always maps to
the same storage key.
"""

import re
from enum import Enum

from domain.model.errors import EmptyIdentifierError

_DISALLOWED = re.compile(r'[^a-z0-9\s-]')
_WHITESPACE_RUN = re.compile(r'\s+')


class IdMode(str, Enum):
    """Normalization flavour: plain word keys or hyphenated slugs."""
    WORD = 'word'
    SLUG = 'slug'


def normalize(label: str, mode: IdMode = IdMode.WORD) -> str:
    """Map a label to its canonical identifier.

    Lower-cases, drops every character outside ``a-z``, ``0-9``, whitespace
    and ``-``, then trims. In slug mode internal whitespace runs collapse to a
    single hyphen.

    Example:
        normalize('World!') → 'world'
        normalize('My  Trip   2024', IdMode.SLUG) → 'my-trip-2024'
    """
    value = _DISALLOWED.sub('', label.lower()).strip()
    if mode == IdMode.SLUG:
        value = _WHITESPACE_RUN.sub('-', value)
    return value


def require_id(label: str, mode: IdMode = IdMode.WORD) -> str:
    """Normalize a label, raising EmptyIdentifierError if nothing is left."""
    value = normalize(label, mode)
    if not value:
        raise EmptyIdentifierError(label)
    return value
