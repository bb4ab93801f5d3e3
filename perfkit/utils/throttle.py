"""Throttling for high-frequency input events.

:class:`RateLimiter` lets at most one call of the wrapped function through
per ``delay_ms`` window. A call arriving inside the window is deferred to the
end of the window; a later call in the same window replaces it, so the
deferred invocation always uses the most recent arguments.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from ..config.models import ThrottleConfig, resolve_config
from .scheduling import Scheduler, TimerHandle, default_scheduler, run_deferred

logger = logging.getLogger(__name__)


class RateLimiter:
    """Time-windowed call suppression with a trailing deferred call.

    Parameters
    ----------
    func: Callable
        Target invoked at most once per window.
    config: ThrottleConfig, optional
        Window options. ``delay_ms`` overrides ``config.delay_ms``.
    delay_ms: float, optional
        Window length in milliseconds (default 100).
    scheduler: Scheduler, optional
        Clock and timer source. Defaults to the running event loop.

    Notes
    -----
    The last-invocation time starts at ``0.0`` on the scheduler clock, so
    the first call runs immediately unless the clock itself is still inside
    the first window.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        config: Optional[ThrottleConfig] = None,
        *,
        delay_ms: Optional[float] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        functools.update_wrapper(self, func)  # type: ignore[arg-type]
        self.config = resolve_config(ThrottleConfig, config, delay_ms=delay_ms)
        self._func = func
        self._delay = self.config.delay_ms / 1000.0
        self._scheduler = scheduler or default_scheduler()
        self._last_invoked = 0.0
        self._handle: Optional[TimerHandle] = None
        self._pending_call: Optional[Tuple[Tuple[Any, ...], Dict[str, Any]]] = None

    @property
    def pending(self) -> bool:
        """True while a deferred invocation is scheduled."""
        return self._handle is not None

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.invoke(*args, **kwargs)

    def invoke(self, *args: Any, **kwargs: Any) -> Any:
        """Call the target now, or defer it to the end of the current window.

        Returns the target's result on the immediate path and ``None`` when
        the call was deferred. Exceptions on the immediate path propagate.
        """
        now = self._scheduler.now()
        elapsed = now - self._last_invoked
        if elapsed > self._delay:
            self._last_invoked = now
            return self._func(*args, **kwargs)

        self._cancel_handle()
        self._pending_call = (args, kwargs)
        self._handle = self._scheduler.call_later(self._delay - elapsed, self._fire)
        logger.debug(
            "throttle.deferred",
            extra={"fire_in_ms": (self._delay - elapsed) * 1000.0},
        )
        return None

    def cancel(self) -> None:
        """Drop the pending deferred invocation, if any."""
        self._cancel_handle()
        self._pending_call = None

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        call, self._pending_call = self._pending_call, None
        if call is None:
            return
        args, kwargs = call
        self._last_invoked = self._scheduler.now()
        run_deferred("throttle", self._func, *args, **kwargs)


def throttle_input(
    func: Callable[..., Any],
    delay_ms: float = 100,
    scheduler: Optional[Scheduler] = None,
) -> RateLimiter:
    """Wrap ``func`` in a :class:`RateLimiter`."""
    return RateLimiter(func, delay_ms=delay_ms, scheduler=scheduler)
