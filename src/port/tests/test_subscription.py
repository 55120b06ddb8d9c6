import asyncio
import unittest
from unittest.mock import AsyncMock

from port.subscription import Subscription


class TestSubscription(unittest.IsolatedAsyncioTestCase):

    async def test_close_runs_hook_once(self):
        hook = AsyncMock()
        subscription = Subscription(hook)

        await subscription.close()
        await subscription.close()

        hook.assert_awaited_once()
        self.assertTrue(subscription.closed)

    async def test_context_manager_closes(self):
        hook = AsyncMock()
        async with Subscription(hook) as subscription:
            self.assertFalse(subscription.closed)
        hook.assert_awaited_once()


class TestForTask(unittest.IsolatedAsyncioTestCase):

    async def test_close_cancels_running_task(self):
        task = asyncio.create_task(asyncio.Event().wait())
        await asyncio.sleep(0)

        await Subscription.for_task(task).close()

        self.assertTrue(task.cancelled())

    async def test_close_after_task_failed_does_not_raise(self):
        async def _fails():
            raise ValueError('stream consumer failed')

        task = asyncio.create_task(_fails())
        await asyncio.sleep(0)
        self.assertTrue(task.done())

        await Subscription.for_task(task).close()

    async def test_close_after_task_finished(self):
        task = asyncio.create_task(asyncio.sleep(0))
        await task

        subscription = Subscription.for_task(task)
        await subscription.close()
        self.assertTrue(subscription.closed)


if __name__ == '__main__':
    unittest.main()
