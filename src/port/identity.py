"""Port for the identity provider's session event stream."""

from collections.abc import AsyncIterator
from typing import Protocol

from domain.model.owner import OwnerContext


class IdentityProvider(Protocol):
    def events(self) -> AsyncIterator[OwnerContext]:
        """Yield the current owner context, then every sign-in/sign-out transition."""
        ...
