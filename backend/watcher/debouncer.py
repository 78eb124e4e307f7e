"""
SimWatch Debouncer.

Coalesces bursts of change notifications into a single delayed action.
Requires Python 3.11+.
"""

import asyncio
import inspect
from collections.abc import Callable
from typing import Any

from utils.config import get_settings
from utils.logger import LoggerMixin


class Debouncer(LoggerMixin):
    """
    Owns at most one pending delayed action.

    Every call to ``schedule_after`` cancels whatever was pending and
    restarts the countdown, so a burst of calls results in exactly one
    execution timed from the last call. Timers live on a single asyncio
    event loop, and the action runs on that same loop. Scheduling and
    cancelling must therefore happen on the loop thread as well; the
    directory watchers marshal their callbacks there before calling in.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        default_delay: float | None = None,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            loop: Event loop to schedule on (defaults to the running loop)
            default_delay: Delay in seconds used when the caller passes none
        """
        if default_delay is None:
            default_delay = get_settings().watcher.device_reload_delay

        self._loop = loop
        self._default_delay = default_delay
        self._handle: asyncio.TimerHandle | None = None
        # Bumped on every schedule/cancel; a timer only fires if its
        # generation is still current.
        self._generation = 0
        self._tasks: set[asyncio.Task[Any]] = set()

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Bind the debouncer to an event loop."""
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_after(
        self,
        delay: float | None,
        action: Callable[[], Any],
    ) -> None:
        """
        Replace any pending action with ``action`` run after ``delay``.

        Args:
            delay: Quiet period in seconds, or None for the default delay
            action: Callable or coroutine function taking no arguments
        """
        if delay is None:
            delay = self._default_delay

        loop = self._get_loop()
        self.cancel()
        generation = self._generation
        self._handle = loop.call_later(delay, self._fire, generation, action)
        self.log.debug("debounce_scheduled", delay=delay, generation=generation)

    def cancel(self) -> None:
        """Cancel the pending action, if there is one."""
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, generation: int, action: Callable[[], Any]) -> None:
        if generation != self._generation:
            return
        self._handle = None

        try:
            result = action()
        except Exception as e:
            self.log.error("debounced_action_failed", error=str(e))
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=self._get_loop())
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.log.error("debounced_action_failed", error=str(error))

    async def drain(self) -> None:
        """Wait for any already-fired async actions to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> bool:
        """Whether an action is waiting for its quiet period to elapse."""
        return self._handle is not None

    @property
    def default_delay(self) -> float:
        """Delay used when ``schedule_after`` is given None."""
        return self._default_delay
