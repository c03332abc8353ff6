import asyncio
import logging
from typing import Awaitable, Optional

logger = logging.getLogger(__name__)


class TaskTracker:
    """Owns fire-and-forget work started by request handlers.

    Handlers return before the work finishes, but every task keeps a name
    and a handle here so its outcome can be awaited (``drain``) or looked
    up (``get``). Failures are logged, never re-raised into the request.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}

    def spawn(self, name: str, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks[name] = task
        task.add_done_callback(lambda t: self._finished(name, t))
        return task

    def _finished(self, name: str, task: asyncio.Task) -> None:
        if self._tasks.get(name) is task:
            del self._tasks[name]
        if task.cancelled():
            logger.warning("[TASK] %s cancelled", name)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("[TASK] %s failed: %s", name, exc, exc_info=exc)
        else:
            logger.info("[TASK] %s done", name)

    def get(self, name: str) -> Optional[asyncio.Task]:
        return self._tasks.get(name)

    @property
    def pending(self) -> list[str]:
        return list(self._tasks)

    async def wait_for(self, name: str) -> None:
        """Wait for a running task without propagating its failure."""
        task = self._tasks.get(name)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def drain(self) -> None:
        while self._tasks:
            running = dict(self._tasks)
            await asyncio.gather(*running.values(), return_exceptions=True)
            for name, task in running.items():
                if self._tasks.get(name) is task:
                    del self._tasks[name]


tracker = TaskTracker()
