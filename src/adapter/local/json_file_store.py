"""File-backed implementation of LocalStore.

One JSON file per key under a per-device directory. Writes go to a temporary
file first and are moved into place with ``os.replace`` so a crash never
leaves a half-written snapshot behind.
"""

import logging
import os
import re
import tempfile
from pathlib import Path

from port.local_store import LocalStoreError

logger = logging.getLogger(__name__)

LOCAL_STORE_DIR = os.getenv('LOCAL_STORE_DIR', str(Path.home() / '.wordbook'))

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


class JsonFileLocalStore:
    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory or LOCAL_STORE_DIR).expanduser()

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith('.'):
            raise LocalStoreError(f"Invalid local store key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read local store key", extra={"key": key, "error": str(e)})
            raise LocalStoreError(str(e)) from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to write local store key", extra={"key": key, "error": str(e)})
            raise LocalStoreError(str(e)) from e
        logger.debug("Local store key written", extra={"key": key, "bytes": len(value)})

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to remove local store key", extra={"key": key, "error": str(e)})
            raise LocalStoreError(str(e)) from e
