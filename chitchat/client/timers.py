import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Calls an async callback every ``interval`` seconds until cancelled.

    The first call happens one interval after start(). A failing tick is
    logged and the schedule continues. The callback may cancel or restart
    its own timer. Use it as an async context manager to guarantee the task
    is cancelled on every exit path.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        name: Optional[str] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name or getattr(callback, "__name__", "periodic-task")
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._active: Optional[int] = None
        self._in_callback = False

    @property
    def running(self) -> bool:
        return (
            self._active is not None
            and self._task is not None
            and not self._task.done()
        )

    def start(self) -> None:
        if self.running:
            return
        self._generation += 1
        self._active = self._generation
        self._task = asyncio.create_task(self._run(self._generation), name=self.name)

    async def _run(self, generation: int) -> None:
        # A restart bumps the generation; an older loop then exits on its own
        while self._active == generation:
            await asyncio.sleep(self.interval)
            if self._active != generation:
                break
            self.ticks += 1
            self._in_callback = True
            try:
                await self.callback()
            except Exception as e:
                logger.warning(f"Tick {self.ticks} of {self.name} failed: {e}")
            finally:
                self._in_callback = False

    def cancel(self) -> None:
        """
        Stops scheduling further ticks; safe to call from the callback.
        A tick already in progress is left to finish, only the wait is interrupted.
        """
        self._active = None
        task = self._task
        if (
            task is not None
            and not task.done()
            and not self._in_callback
            and task is not asyncio.current_task()
        ):
            task.cancel()

    async def stop(self) -> None:
        self.cancel()
        task = self._task
        if task is None or task is asyncio.current_task():
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "PeriodicTask":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
