"""Fixed-delay repeating coroutine."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from ..core.asyncio_utils import cancel_and_wait, create_logged_task
from ..core.logging_utils import get_module_logger

logger = get_module_logger("RepeatingTask")


class RepeatingTask:
    """Run ``action`` now, then again ``interval`` seconds after each run.

    The delay is measured from the end of one run to the start of the next,
    so slow runs push later ones back. A failing run is logged and the
    schedule continues.
    """

    def __init__(
        self,
        action: Callable[[], Awaitable[object]],
        interval: float,
        *,
        name: str = "repeating-task",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._action = action
        self.interval = interval
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = create_logged_task(self._run(), logger=logger, context=self.name)

    async def stop(self) -> None:
        task, self._task = self._task, None
        await cancel_and_wait(task)

    async def _run(self) -> None:
        while True:
            try:
                await self._action()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s run failed", self.name)
            await asyncio.sleep(self.interval)


__all__ = ["RepeatingTask"]
