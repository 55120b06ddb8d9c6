"""Listing indexes for the entry collections, created at startup.

Each entry collection is read as "all documents of one user, most recent
activity first", so it gets one ``(user_id, <activity field> desc)`` index.
"""

from logging import getLogger

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure, PyMongoError

from adapter.mongodb import ENTRY_COLLECTION_NAMES

logger = getLogger(__name__)

ACTIVITY_FIELDS = {
    'vocabulary': 'addedAt',
    'articles': 'updatedAt',
}

# IndexOptionsConflict, IndexKeySpecsConflict
_CONFLICT_CODES = {85, 86}


def listing_index(collection_name: str) -> tuple[list, str]:
    """Index keys and name of the listing index for an entry collection."""
    keys = [('user_id', ASCENDING), (ACTIVITY_FIELDS[collection_name], DESCENDING)]
    return keys, f'idx_{collection_name}_user_activity'


async def ensure_listing_index(collection, collection_name: str) -> None:
    """Create the listing index, replacing an older index that clashes with it.

    A clash is an index with our name but other keys (the activity field
    changed) or our keys under another name. Other failures propagate.
    """
    keys, name = listing_index(collection_name)
    try:
        await collection.create_index(keys, name=name)
        return
    except OperationFailure as e:
        if e.code not in _CONFLICT_CODES:
            raise

    wanted = dict(keys)
    for existing, info in (await collection.index_information()).items():
        if existing != '_id_' and (existing == name or dict(info.get('key', [])) == wanted):
            logger.warning("Dropping clashing index", extra={"collection": collection_name, "index": existing})
            await collection.drop_index(existing)
    await collection.create_index(keys, name=name)
    logger.info("Recreated listing index", extra={"collection": collection_name, "index": name})


async def ensure_all_indexes(db) -> bool:
    """Ensure the listing index of every entry collection. Returns False if any failed."""
    ok = True
    for collection_name in ENTRY_COLLECTION_NAMES:
        try:
            await ensure_listing_index(db[collection_name], collection_name)
        except PyMongoError as e:
            logger.error("Failed to create indexes", extra={"collection": collection_name, "error": str(e)})
            ok = False
    return ok
