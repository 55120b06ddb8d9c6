"""Composition root: wires ports to concrete adapters."""

import logging

from dotenv import load_dotenv

# Load environment variables from .env file
# Must run before importing adapters that read env vars at import time
load_dotenv()

from adapter.external.litellm import LiteLLMTextAnalyzer
from adapter.local.json_file_store import JsonFileLocalStore
from adapter.mongodb.connection import close_client, get_mongodb_client, DATABASE_NAME
from adapter.mongodb.indexes import ensure_all_indexes
from adapter.mongodb.remote_store import MongoRemoteStore
from domain.model.entry_kind import ARTICLES, VOCABULARY
from port.local_store import LocalStore
from port.remote_store import RemoteStore, RemoteStoreError
from port.text_analysis import TextAnalysisPort
from services.entry_repository import EntryRepository
from services.migration_service import MigrationCoordinator
from services.session_service import SessionManager

logger = logging.getLogger(__name__)


def get_local_store() -> LocalStore:
    return JsonFileLocalStore()


async def get_remote_store() -> RemoteStore:
    """MongoDB-backed remote store, raising RemoteStoreError if unavailable."""
    client = await get_mongodb_client()
    if client is None:
        raise RemoteStoreError("Database unavailable")
    db = client[DATABASE_NAME]
    if not await ensure_all_indexes(db):
        logger.warning("Failed to create some MongoDB indexes")
    return MongoRemoteStore(db)


def get_text_analyzer() -> TextAnalysisPort:
    return LiteLLMTextAnalyzer()


def build_session(local_store: LocalStore, remote_store: RemoteStore) -> SessionManager:
    """Two entry repositories plus migration, starting anonymous."""
    return SessionManager(
        vocabulary=EntryRepository(VOCABULARY, local_store, remote_store),
        articles=EntryRepository(ARTICLES, local_store, remote_store),
        migration=MigrationCoordinator(local_store, remote_store),
    )


async def shutdown(session: SessionManager) -> None:
    """Release every subscription, then the database client."""
    await session.close()
    await close_client()
