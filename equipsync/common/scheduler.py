"""
Re-arming Timer

Provides RearmingTimer, a one-shot asyncio timer that the owner re-arms
at the end of each run (cancel-then-schedule), instead of a fixed-period
ticker. A slow run delays the next one but never overlaps it.

Usage:
    async def tick():
        try:
            ...  # do work
        finally:
            timer.schedule(10.0)

    timer = RearmingTimer(tick, name="circuits.poll")
    timer.schedule(10.0)

    # Later:
    await timer.stop()
"""

import asyncio
import time
from typing import Awaitable, Callable

from .logging_setup import get_service_logger

logger = get_service_logger("scheduler")


class RearmingTimer:
    """
    Single pending callback with an explicit cancellation handle.

    At most one run is pending at any time: schedule() always cancels the
    previous handle first. Errors raised by the callback are logged and
    dropped so that an owner which re-arms in a finally block keeps running.

    Attributes:
        callback: Async function to call when the timer fires
        name: Name for logging/identification
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        name: str = "unnamed",
    ):
        self.callback = callback
        self.name = name

        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None
        self._due_at: float | None = None

        # Observability
        self._fire_count: int = 0
        self._error_count: int = 0
        self._last_execution_time: float = 0

    @property
    def pending(self) -> bool:
        """True while a future run is armed"""
        return self._handle is not None and not self._handle.cancelled()

    @property
    def running(self) -> bool:
        """True while a fired callback is still executing"""
        return self._task is not None and not self._task.done()

    def schedule(self, delay_seconds: float) -> None:
        """Cancel any pending run and arm a new one after delay_seconds."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, delay_seconds), self._fire)
        self._due_at = time.time() + max(0.0, delay_seconds)

    def cancel(self) -> None:
        """Cancel the pending run, if any. An executing callback is left alone."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._due_at = None

    async def stop(self) -> None:
        """Cancel the pending run and any callback still executing."""
        self.cancel()
        task = self._task
        self._task = None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _fire(self) -> None:
        self._handle = None
        self._due_at = None
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        start = time.time()
        try:
            await self.callback()
            self._fire_count += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._error_count += 1
            logger.debug(f"Timer '{self.name}' callback raised: {e}")
        finally:
            self._last_execution_time = time.time() - start

    @property
    def fire_count(self) -> int:
        """Number of callbacks that completed without error"""
        return self._fire_count

    @property
    def error_count(self) -> int:
        """Number of callbacks that raised"""
        return self._error_count

    def get_stats(self) -> dict:
        """Get timer statistics for observability."""
        return {
            "name": self.name,
            "pending": self.pending,
            "due_in_s": round(self._due_at - time.time(), 3) if self._due_at else None,
            "fire_count": self._fire_count,
            "error_count": self._error_count,
            "last_execution_s": round(self._last_execution_time, 3),
        }
