"""Cancellable one-shot timer for a trivia round."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RoundTimer:
    """Runs a coroutine callback after a delay unless cancelled first."""

    def __init__(self, delay: float, callback: Callable[[], Awaitable[None]], name: str = "round-timer"):
        self.delay = delay
        self._callback = callback
        self._name = name
        self._task: Optional[asyncio.Task] = None
        self._fired = False

    def start(self) -> 'RoundTimer':
        self._task = asyncio.create_task(self._run(), name=self._name)
        return self

    async def _run(self):
        await asyncio.sleep(self.delay)
        self._fired = True
        try:
            await self._callback()
        except Exception:
            logger.exception("Error in %s callback", self._name)

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done() and not self._fired

    def cancel(self):
        """Stop the timer. A no-op once it has fired, so a callback can cancel its own timer."""
        if self._task is None or self._task.done() or self._fired:
            return
        if self._task is asyncio.current_task():
            return
        self._task.cancel()
