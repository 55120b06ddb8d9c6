"""Port for on-device key-value persistence."""

from typing import Protocol


class LocalStoreError(Exception):
    """On-device storage could not be read or written."""


class LocalStore(Protocol):
    """Flat string key → string value store, like a browser's localStorage.

    Values are whole JSON documents; every write replaces the previous value.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Replace the value stored under key."""
        ...

    def remove(self, key: str) -> None:
        """Delete key. No-op if absent."""
        ...
