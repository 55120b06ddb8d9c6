"""Settings service — the single flat settings record in the Local Store.

Settings never sync to the remote store and are not touched by migration.
"""

import json
import logging

from domain.model.settings import AppSettings
from port.local_store import LocalStore, LocalStoreError

logger = logging.getLogger(__name__)

SETTINGS_KEY = 'language_app_settings'


def load_settings(store: LocalStore) -> AppSettings:
    """Load settings, falling back to defaults on missing or malformed data."""
    try:
        raw = store.get(SETTINGS_KEY)
    except LocalStoreError as e:
        logger.error("Failed to load settings", extra={"error": str(e)})
        return AppSettings()
    if not raw:
        return AppSettings()

    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.error("Malformed settings", extra={"error": str(e)})
        return AppSettings()
    if not isinstance(data, dict):
        return AppSettings()
    return AppSettings(api_key=str(data.get('apiKey') or ''))


def save_settings(store: LocalStore, settings: AppSettings) -> None:
    """Persist settings. Raises LocalStoreError so the caller can tell the user."""
    store.set(SETTINGS_KEY, json.dumps({'apiKey': settings.api_key}))
    logger.info("Settings saved")
