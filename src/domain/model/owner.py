"""Owner context — who governs an entry collection's reads and writes."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Anonymous:
    """The on-device, not-signed-in owner."""

    @property
    def is_authenticated(self) -> bool:
        return False


@dataclass(frozen=True)
class Authenticated:
    """A signed-in user; entries live in that user's remote collections."""
    user_id: str
    email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return True

    def same_user(self, other: 'OwnerContext') -> bool:
        return isinstance(other, Authenticated) and other.user_id == self.user_id


OwnerContext = Anonymous | Authenticated

ANONYMOUS = Anonymous()
