"""
Batched delivery of discrete update events.

A :class:`BatchCollector` accumulates submitted items and hands them to a
sink in one call once submissions have been quiet for ``delay_ms``. Every
submission restarts the timer (trailing-edge debounce over the batch).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from ..config.models import BatchConfig, resolve_config
from .scheduling import Scheduler, TimerHandle, default_scheduler, run_deferred

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BatchCollector(Generic[T]):
    """Collect items and flush them together after a quiet period.

    Parameters
    ----------
    flush: Callable[[List[T]], Any]
        Sink receiving each batch, in submission order.
    config: BatchConfig, optional
        Delay options. ``delay_ms`` overrides ``config.delay_ms``.
    delay_ms: float, optional
        Quiet period in milliseconds (default 50).
    scheduler: Scheduler, optional
        Timer source. Defaults to the running event loop.
    """

    def __init__(
        self,
        flush: Callable[[List[T]], Any],
        config: Optional[BatchConfig] = None,
        *,
        delay_ms: Optional[float] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.config = resolve_config(BatchConfig, config, delay_ms=delay_ms)
        self._sink = flush
        self._delay = self.config.delay_ms / 1000.0
        self._scheduler = scheduler or default_scheduler()
        self._pending: List[T] = []
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> List[T]:
        """Copy of the items waiting for the next flush."""
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def __call__(self, item: T) -> None:
        self.submit(item)

    def submit(self, item: T) -> None:
        """Queue ``item`` and restart the flush timer."""
        self._pending.append(item)
        self._cancel_handle()
        self._handle = self._scheduler.call_later(self._delay, self._fire)

    def flush_now(self) -> List[T]:
        """Cancel the timer and deliver the pending batch immediately.

        Returns the delivered batch. An empty batch is not delivered.
        Exceptions raised by the sink propagate; the batch is already
        cleared at that point.
        """
        self._cancel_handle()
        batch = self._take()
        if batch:
            self._sink(batch)
        return batch

    def clear(self) -> int:
        """Discard pending items without flushing. Returns how many were dropped."""
        self._cancel_handle()
        dropped = len(self._take())
        if dropped:
            logger.debug("batch.cleared", extra={"dropped": dropped})
        return dropped

    def _take(self) -> List[T]:
        batch, self._pending = self._pending, []
        return batch

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        batch = self._take()
        if not batch:
            return
        logger.debug("batch.flush", extra={"size": len(batch)})
        run_deferred("batch", self._sink, batch)


def batch_updates(
    flush: Callable[[List[T]], Any],
    delay_ms: float = 50,
    scheduler: Optional[Scheduler] = None,
) -> BatchCollector[T]:
    """Wrap ``flush`` in a :class:`BatchCollector`."""
    return BatchCollector(flush, delay_ms=delay_ms, scheduler=scheduler)


def chunk_array(items: Sequence[Any], chunk_size: int = 50) -> List[List[Any]]:
    """Split ``items`` into consecutive lists of at most ``chunk_size``.

    Raises
    ------
    ValueError
        If ``chunk_size`` is less than 1.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    return [list(items[i : i + chunk_size]) for i in range(0, len(items), chunk_size)]
