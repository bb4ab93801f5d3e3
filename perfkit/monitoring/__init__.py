"""Render count and timing diagnostics.

:class:`PerformanceMonitor` records how often named components render and
how long measured sections take, and logs a warning when a component
re-renders excessively or a measure exceeds one 60 fps frame. It is meant
for development: when disabled every method is a no-op.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Dict, Optional, TypeVar

from ..config.models import EnvSettings

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

RENDER_WARN_THRESHOLD = 10
FRAME_BUDGET_MS = 16.0
HIGH_RENDER_COUNT = 20


class PerformanceMonitor:
    """Track component renders and measure durations.

    Parameters
    ----------
    enabled : bool, optional
        Defaults to ``EnvSettings().debug`` (``PERFKIT_DEBUG``).
    clock : Callable[[], float], optional
        Seconds source for measures. Defaults to :func:`time.perf_counter`.
    """

    def __init__(
        self,
        enabled: Optional[bool] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.enabled = EnvSettings().debug if enabled is None else enabled
        self._clock = clock or time.perf_counter
        self._render_counts: Dict[str, int] = {}
        self._render_starts: Dict[str, float] = {}

    def track_render(self, component: str) -> None:
        """Count one render of ``component``."""
        if not self.enabled:
            return
        count = self._render_counts.get(component, 0) + 1
        self._render_counts[component] = count
        if count > RENDER_WARN_THRESHOLD + 1:
            logger.warning(
                f"{component} has rendered {count} times - consider memoization",
                extra={"component": component, "renders": count},
            )

    def start_measure(self, component: str) -> None:
        """Start timing ``component``."""
        if not self.enabled:
            return
        self._render_starts[component] = self._clock()

    def end_measure(self, component: str) -> Optional[float]:
        """Stop timing ``component`` and return the duration in milliseconds.

        Returns None when disabled or when no measure was started.
        """
        if not self.enabled:
            return None
        started = self._render_starts.pop(component, None)
        if started is None:
            return None
        duration_ms = (self._clock() - started) * 1000.0
        if duration_ms > FRAME_BUDGET_MS:
            logger.warning(
                f"{component} took {duration_ms:.2f}ms to render "
                f"(>{FRAME_BUDGET_MS:.0f}ms frame budget)",
                extra={"component": component, "duration_ms": duration_ms},
            )
        return duration_ms

    def get_stats(self) -> Optional[Dict[str, int]]:
        """Return render counts by component, or None when disabled."""
        if not self.enabled:
            return None
        return dict(self._render_counts)

    def print_report(self) -> None:
        """Log render counts, highest first."""
        stats = self.get_stats()
        if stats is None:
            return
        logger.info("Performance report")
        for name, count in sorted(stats.items(), key=lambda kv: kv[1], reverse=True):
            if count > HIGH_RENDER_COUNT:
                severity = "high"
            elif count > RENDER_WARN_THRESHOLD:
                severity = "medium"
            else:
                severity = "ok"
            logger.info(
                f"[{severity}] {name}: {count} renders",
                extra={"component": name, "renders": count, "severity": severity},
            )

    def reset(self) -> None:
        """Forget all counts and open measures."""
        self._render_counts.clear()
        self._render_starts.clear()

    def track_renders(self, component: Optional[str] = None) -> Callable[[F], F]:
        """Decorator counting each call of the wrapped function as a render."""

        def decorator(func: F) -> F:
            name = component or func.__qualname__

            @functools.wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                self.track_render(name)
                return func(*args, **kwargs)

            return wrapper  # type: ignore[return-value]

        return decorator


performance_monitor = PerformanceMonitor()
