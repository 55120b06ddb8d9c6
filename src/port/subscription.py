"""Cancellable handle for a live snapshot stream."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

CloseHook = Callable[[], Awaitable[None]]


class Subscription:
    """Handle returned by every ``watch``/``subscribe`` call.

    Notifications stop once ``close()`` has been awaited. Closing is
    idempotent; the hook runs exactly once.
    """

    def __init__(self, on_close: CloseHook | None = None):
        self._on_close = on_close
        self._closed = False

    @classmethod
    def for_task(cls, task: asyncio.Task) -> 'Subscription':
        """Subscription whose close() cancels and awaits a background task."""

        async def _cancel() -> None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Subscription task ended with an error")

        return cls(_cancel)

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            await self._on_close()

    async def __aenter__(self) -> 'Subscription':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
