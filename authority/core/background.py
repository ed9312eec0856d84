"""Background work: fire-and-forget tasks and periodic jobs.

`BackgroundDispatcher` runs notifications and event publication off the
request path. The caller never awaits the outcome; failures are logged. The
dispatcher keeps a strong reference to each task until it finishes and can be
drained on shutdown.

`PeriodicTask` runs a job on a fixed interval with log-and-continue failure
handling.
"""

import asyncio
from typing import Awaitable, Callable, Coroutine, Optional, Set

import structlog

logger = structlog.get_logger(__name__)


class BackgroundDispatcher:
    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def submit(self, coro: Coroutine, name: str = "background") -> asyncio.Task:
        """Schedule a coroutine on the running loop and return immediately."""
        task = asyncio.create_task(self._guard(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @staticmethod
    async def _guard(coro: Coroutine, name: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning("Background task cancelled", task=name)
            raise
        except Exception as e:
            logger.error(
                "Background task failed", task=name, error=str(e), error_type=type(e).__name__
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for outstanding tasks; cancel whatever is still running after `timeout`."""
        while self._tasks:
            tasks = list(self._tasks)
            done, not_done = await asyncio.wait(tasks, timeout=timeout)
            if not_done:
                logger.warning("Cancelling unfinished background tasks", count=len(not_done))
                for task in not_done:
                    task.cancel()
                await asyncio.gather(*not_done, return_exceptions=True)
                return


class PeriodicTask:
    """Runs `job` every `interval` seconds until stopped.

    A failing run is logged and the next run happens on schedule.
    """

    def __init__(self, name: str, interval: float, job: Callable[[], Awaitable[object]]):
        self.name = name
        self.interval = interval
        self._job = job
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> bool:
        """Run the job once. Returns False if it raised."""
        try:
            result = await self._job()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "Periodic task failed", task=self.name, error=str(e), error_type=type(e).__name__
            )
            return False
        logger.debug("Periodic task completed", task=self.name, result=result)
        return True

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.run_once()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info("Periodic task started", task=self.name, interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Periodic task stopped", task=self.name)
