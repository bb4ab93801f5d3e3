"""
Deferred callback scheduling on the running event loop.

Throttle, debounce and batch wrappers all need the same primitive: run a
callback later on the same thread, with a handle that can cancel it before
it fires. :class:`AsyncioScheduler` maps that onto ``loop.call_later``.
Wrappers accept any object implementing :class:`Scheduler`, which lets tests
drive them with a virtual clock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):  # pylint: disable=too-few-public-methods
    """Handle returned by :meth:`Scheduler.call_later`."""

    def cancel(self) -> None:
        """Prevent the callback from firing. Idempotent."""


class Scheduler(Protocol):
    """Single-threaded deferred execution with cancellable handles."""

    def now(self) -> float:
        """Monotonic time in seconds."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        """Run ``callback`` after ``delay`` seconds."""


class AsyncioScheduler:
    """Scheduler backed by the currently running asyncio event loop.

    The loop is looked up on every ``call_later`` so one scheduler instance
    can be shared by wrappers created before the loop starts.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def now(self) -> float:
        return time.monotonic()

    def call_later(
        self, delay: float, callback: Callable[[], Any]
    ) -> asyncio.TimerHandle:
        """Schedule ``callback`` on the event loop.

        Raises
        ------
        RuntimeError
            If no loop was given and none is running in this thread.
        """
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay), callback)


_default_scheduler = AsyncioScheduler()


def default_scheduler() -> Scheduler:
    """Return the shared event-loop scheduler."""
    return _default_scheduler


def run_deferred(event: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """Invoke ``func`` from a timer callback, logging instead of raising.

    Nothing is waiting on a deferred call, so an exception would otherwise
    surface only in the event loop's exception handler.
    """
    try:
        func(*args, **kwargs)
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception(
            f"{event}.deferred_call_failed",
            extra={"callable": getattr(func, "__qualname__", repr(func))},
        )
