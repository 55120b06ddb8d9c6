"""In-memory identity provider for testing.

Every call to ``events()`` gets its own stream, so several simulated client
sessions (browser tabs) can observe the same sign-in.
"""

import asyncio
from collections.abc import AsyncIterator

from domain.model.owner import ANONYMOUS, Authenticated, OwnerContext

_CLOSED = object()


class FakeIdentityProvider:
    def __init__(self, initial: OwnerContext = ANONYMOUS):
        self.current: OwnerContext = initial
        self._queues: list[asyncio.Queue] = []

    async def events(self) -> AsyncIterator[OwnerContext]:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        try:
            yield self.current
            while True:
                event = await queue.get()
                if event is _CLOSED:
                    return
                yield event
        finally:
            self._queues.remove(queue)

    def emit(self, owner: OwnerContext) -> None:
        self.current = owner
        for queue in self._queues:
            queue.put_nowait(owner)

    def sign_in(self, user_id: str, email: str | None = None) -> None:
        self.emit(Authenticated(user_id=user_id, email=email))

    def sign_out(self) -> None:
        self.emit(ANONYMOUS)

    def close(self) -> None:
        for queue in self._queues:
            queue.put_nowait(_CLOSED)
