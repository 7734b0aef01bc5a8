"""
Deferred callback scheduling for reveal sessions.

The reveal manager only talks to :class:`Scheduler`, so tests can drive
timeouts with a manual clock instead of sleeping.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class Scheduler(ABC):
    """Timer abstraction running callbacks on the caller's event loop."""

    @abstractmethod
    def now(self) -> float:
        """Return the current monotonic time in seconds."""

    @abstractmethod
    def schedule(self, delay: float, callback: Callable[[], None]) -> Any:
        """Run ``callback`` once after ``delay`` seconds.

        Returns:
            An opaque timer handle accepted by :meth:`cancel`.
        """

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a pending timer. The callback must never run afterwards."""


class AsyncioScheduler(Scheduler):
    """Scheduler backed by ``loop.call_later``.

    The loop is resolved lazily so the scheduler can be built outside of
    a running loop and used from coroutines later on.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def schedule(
        self, delay: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
