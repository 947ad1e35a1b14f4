"""Fire-and-forget delayed tasks."""
import asyncio
import logging
from typing import Awaitable, Callable, Protocol

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[None]]


class DeferredTaskScheduler(Protocol):
    """Deferred task scheduler protocol."""

    def schedule(self, factory: TaskFactory, delay: float, name: str) -> None:
        """Run factory() after delay seconds without blocking the caller."""
        ...


class DeferredTaskRunner:
    """asyncio-backed runner. Tasks die with the process; failures are logged, never raised."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, factory: TaskFactory, delay: float, name: str) -> asyncio.Task:
        task = asyncio.create_task(self._run(factory, delay, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, factory: TaskFactory, delay: float, name: str) -> None:
        try:
            if delay > 0:
                await asyncio.sleep(delay)
            await factory()
        except asyncio.CancelledError:
            logger.info("Deferred task %s cancelled", name)
            raise
        except Exception:
            logger.exception("Deferred task %s failed", name)

    async def drain(self) -> None:
        """Wait for every scheduled task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel outstanding tasks (app shutdown); their work is lost."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d deferred task(s)", len(tasks))
