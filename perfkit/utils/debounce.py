"""
Debounce helpers for bursty callbacks.

- :func:`debounce` runs the target once a burst has been quiet for the delay.
- :func:`heavy_debounce` adds an optional leading-edge mode.
- :func:`adaptive_debounce` stretches the delay while calls keep arriving fast.
- :func:`throttle` runs the first call of a window and drops the rest.

All helpers schedule through :mod:`perfkit.utils.scheduling` and log, rather
than raise, errors from deferred calls.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from ..config.models import DebounceConfig, resolve_config
from .scheduling import Scheduler, TimerHandle, default_scheduler, run_deferred

logger = logging.getLogger(__name__)

# Calls closer together than this count as one burst for adaptive_debounce.
BURST_GAP_MS = 100
ADAPTIVE_STEP_MS = 50


class Debounced:
    """Trailing-edge debounce, optionally firing on the leading edge instead.

    With ``immediate=False`` the target runs ``delay_ms`` after the last call
    of a burst, with that call's arguments. With ``immediate=True`` the first
    call of a burst runs at once and the rest of the burst is ignored.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        config: Optional[DebounceConfig] = None,
        *,
        delay_ms: Optional[float] = None,
        immediate: bool = False,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        functools.update_wrapper(self, func)  # type: ignore[arg-type]
        self.config = resolve_config(DebounceConfig, config, delay_ms=delay_ms)
        self.immediate = immediate
        self._func = func
        self._scheduler = scheduler or default_scheduler()
        self._handle: Optional[TimerHandle] = None
        self._last_call: Optional[Tuple[Tuple[Any, ...], Dict[str, Any]]] = None

    @property
    def pending(self) -> bool:
        """True while the quiet-period timer is running."""
        return self._handle is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self._last_call = (args, kwargs)
        call_now = self.immediate and self._handle is None
        self._restart(self._delay_seconds())
        if call_now:
            self._func(*args, **kwargs)

    def cancel(self) -> None:
        """Stop the timer without running the target."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._last_call = None

    def _delay_seconds(self) -> float:
        return self.config.delay_ms / 1000.0

    def _restart(self, delay: float) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._scheduler.call_later(delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        call, self._last_call = self._last_call, None
        if self.immediate or call is None:
            return
        args, kwargs = call
        run_deferred("debounce", self._func, *args, **kwargs)


class AdaptiveDebounced(Debounced):
    """Debounce whose delay grows by 50 ms per call in a rapid burst.

    Calls less than 100 ms apart increment a burst counter; the delay is
    ``min(base_delay_ms + 50 * count, max_delay_ms)``. The counter resets
    after a firing or a slower call.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        base_delay_ms: float = 300,
        max_delay_ms: float = 1000,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        if max_delay_ms < base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        super().__init__(func, delay_ms=base_delay_ms, scheduler=scheduler)
        self.max_delay_ms = max_delay_ms
        self.call_count = 0
        self._last_call_time = float("-inf")

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        now = self._scheduler.now()
        if (now - self._last_call_time) * 1000.0 < BURST_GAP_MS:
            self.call_count += 1
        else:
            self.call_count = 0
        self._last_call_time = now
        self._last_call = (args, kwargs)
        self._restart(self._delay_seconds())

    def _delay_seconds(self) -> float:
        delay_ms = min(
            self.config.delay_ms + self.call_count * ADAPTIVE_STEP_MS,
            self.max_delay_ms,
        )
        return delay_ms / 1000.0

    def _fire(self) -> None:
        super()._fire()
        self.call_count = 0


class Throttled:
    """Leading-edge throttle: run the first call, drop the rest of the window."""

    def __init__(
        self,
        func: Callable[..., Any],
        limit_ms: float = 100,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        functools.update_wrapper(self, func)  # type: ignore[arg-type]
        self.limit_ms = limit_ms
        self._func = func
        self._scheduler = scheduler or default_scheduler()
        self._handle: Optional[TimerHandle] = None

    @property
    def in_window(self) -> bool:
        """True while calls are being dropped."""
        return self._handle is not None

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self._handle is not None:
            logger.debug("throttle.dropped")
            return None
        self._handle = self._scheduler.call_later(self.limit_ms / 1000.0, self._reopen)
        return self._func(*args, **kwargs)

    def cancel(self) -> None:
        """Close the current window early."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _reopen(self) -> None:
        self._handle = None


def debounce(
    func: Callable[..., Any],
    delay_ms: float = 300,
    scheduler: Optional[Scheduler] = None,
) -> Debounced:
    """Trailing-edge debounce of ``func``."""
    return Debounced(func, delay_ms=delay_ms, scheduler=scheduler)


def heavy_debounce(
    func: Callable[..., Any],
    delay_ms: float = 500,
    immediate: bool = False,
    scheduler: Optional[Scheduler] = None,
) -> Debounced:
    """Debounce for heavy operations, with an optional leading-edge mode."""
    return Debounced(func, delay_ms=delay_ms, immediate=immediate, scheduler=scheduler)


def adaptive_debounce(
    func: Callable[..., Any],
    base_delay_ms: float = 300,
    max_delay_ms: float = 1000,
    scheduler: Optional[Scheduler] = None,
) -> AdaptiveDebounced:
    """Debounce whose delay adapts to call frequency."""
    return AdaptiveDebounced(
        func, base_delay_ms=base_delay_ms, max_delay_ms=max_delay_ms, scheduler=scheduler
    )


def throttle(
    func: Callable[..., Any],
    limit_ms: float = 100,
    scheduler: Optional[Scheduler] = None,
) -> Throttled:
    """Leading-edge throttle of ``func``."""
    return Throttled(func, limit_ms=limit_ms, scheduler=scheduler)
