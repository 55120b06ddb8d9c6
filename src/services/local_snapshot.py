"""Reading and writing whole-collection snapshots in the Local Store."""

import json
import logging

from domain.model.entry_kind import EntryKind
from domain.model.errors import EmptyIdentifierError
from port.local_store import LocalStore, LocalStoreError

logger = logging.getLogger(__name__)


def read_snapshot(store: LocalStore, kind: EntryKind) -> list[dict]:
    """Load the anonymous collection for kind.

    Unreadable or malformed data loads as an empty collection. Stored
    documents without an id get one derived from their label; documents
    whose label yields no id are skipped.
    """
    try:
        raw = store.get(kind.local_key)
    except LocalStoreError as e:
        logger.error("Failed to load local snapshot", extra={"key": kind.local_key, "error": str(e)})
        return []
    if not raw:
        return []

    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.error("Malformed local snapshot", extra={"key": kind.local_key, "error": str(e)})
        return []
    if not isinstance(data, list):
        logger.error("Local snapshot is not a list", extra={"key": kind.local_key})
        return []

    documents = []
    for item in data:
        if not isinstance(item, dict):
            continue
        if not item.get('id'):
            try:
                item = {**item, 'id': kind.entry_id(kind.label_of(item))}
            except EmptyIdentifierError:
                logger.warning("Skipping local entry without identifier", extra={"key": kind.local_key})
                continue
        documents.append(item)
    return documents


def write_snapshot(store: LocalStore, kind: EntryKind, documents: list[dict]) -> None:
    """Replace the stored collection. LocalStoreError is logged and re-raised."""
    try:
        store.set(kind.local_key, json.dumps(documents, ensure_ascii=False))
    except LocalStoreError as e:
        logger.error("Failed to save local snapshot", extra={"key": kind.local_key, "error": str(e)})
        raise
