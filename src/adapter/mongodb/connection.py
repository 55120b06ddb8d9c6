"""Cached AsyncMongoClient for the remote store.

Change streams and transactions used by the remote store require the server
to run as a replica set.
"""

import os
import logging

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

MONGO_URL = os.getenv('MONGO_URL')
DATABASE_NAME = os.getenv('MONGODB_DATABASE', 'wordbook')

_client_cache: AsyncMongoClient | None = None
_connected_once = False
_config_failed = False


def reset_client():
    global _client_cache, _connected_once, _config_failed
    _client_cache = None
    _connected_once = False
    _config_failed = False


async def _connect(url: str) -> AsyncMongoClient:
    client = AsyncMongoClient(
        url,
        tz_aware=True,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=5000,
        socketTimeoutMS=30000,
        maxPoolSize=10,
        retryWrites=True,
        retryReads=True,
    )
    await client.admin.command('ping')
    return client


async def get_mongodb_client() -> AsyncMongoClient | None:
    """Return a healthy client, reconnecting if the cached one stopped answering.

    A missing MONGO_URL or a failed first connection is treated as a
    configuration problem: it is logged once and later calls return None
    without retrying.
    """
    global _client_cache, _connected_once, _config_failed

    if _client_cache is not None:
        try:
            await _client_cache.admin.command('ping')
            return _client_cache
        except PyMongoError:
            logger.debug("Cached MongoDB client failed ping, reconnecting")
            _client_cache = None

    if _config_failed:
        return None

    if not MONGO_URL:
        logger.error("MONGO_URL not configured")
        _config_failed = True
        return None

    try:
        client = await _connect(MONGO_URL)
    except PyMongoError as e:
        if not _connected_once:
            logger.error("Initial MongoDB connection failed", extra={"error": str(e)[:200]})
            _config_failed = True
        else:
            logger.warning("MongoDB reconnection failed", extra={"error": str(e)[:200]})
        return None

    if not _connected_once:
        logger.info("Connected to MongoDB", extra={"database": DATABASE_NAME})
    _connected_once = True
    _client_cache = client
    return client


async def close_client() -> None:
    """Close the cached client, if any."""
    global _client_cache
    client, _client_cache = _client_cache, None
    if client is not None:
        await client.close()
