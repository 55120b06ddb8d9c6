"""Port for the per-user cloud document store."""

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from domain.model.user import UserProfile
from port.subscription import Subscription


class RemoteStoreError(Exception):
    """Backend read, write or subscription failed."""


class InvalidPathError(RemoteStoreError):
    """A document path segment is empty or not a safe hierarchical key."""


class _ServerTimestamp:
    """Placeholder resolved to the backend's clock at commit time."""

    def __repr__(self) -> str:
        return 'SERVER_TIMESTAMP'


SERVER_TIMESTAMP = _ServerTimestamp()

SnapshotCallback = Callable[[list[dict]], None]
ErrorCallback = Callable[[Exception], None]


def check_segment(segment: str) -> str:
    """Validate one path segment (user id, collection name, document id)."""
    if not isinstance(segment, str) or not segment or '/' in segment:
        raise InvalidPathError(f"Invalid path segment: {segment!r}")
    return segment


class RemoteStore(Protocol):
    """Documents addressed as ``<user_id>/<collection>/<doc_id>``.

    Document values may contain SERVER_TIMESTAMP; the stored value then
    becomes a backend-native timestamp. Every write is atomic per document.
    """

    def watch(
        self,
        user_id: str,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        """Deliver the full collection now and after every committed change.

        Errors are reported once through on_error; the stream then stops.
        """
        ...

    async def get(self, user_id: str, collection: str, doc_id: str) -> dict | None: ...

    async def create(self, user_id: str, collection: str, doc_id: str, data: Mapping[str, Any]) -> bool:
        """Insert only if absent. Returns True if this call created the document."""
        ...

    async def set(
        self,
        user_id: str,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        keep: Mapping[str, Any] | None = None,
    ) -> None:
        """Replace the document with data (upsert).

        Fields named in keep retain their stored value; the value given in
        keep is written only when the stored document lacks the field.
        """
        ...

    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        """Delete the document. No-op if absent."""
        ...

    async def set_many(self, user_id: str, collection: str, documents: Mapping[str, Mapping[str, Any]]) -> None:
        """Replace several documents in one all-or-nothing batch."""
        ...

    async def ensure_user(self, user_id: str, email: str | None) -> bool:
        """Transactionally create the user's root record if it does not exist.

        Returns True if this call created it.
        """
        ...

    async def get_user(self, user_id: str) -> UserProfile | None: ...
