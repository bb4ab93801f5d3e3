"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so ``import perfkit`` resolves
to the local sources regardless of the working directory pytest chooses, and
provides a virtual-clock scheduler for the timer-driven wrappers.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, List

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()


class FakeTimer:
    """Timer handle for :class:`FakeScheduler`."""

    def __init__(self, when: float, seq: int, callback: Callable[[], Any]) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Deterministic scheduler; time only moves when ``advance`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.time = start
        self._timers: List[FakeTimer] = []
        self._seq = 0

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, callback: Callable[[], Any]) -> FakeTimer:
        timer = FakeTimer(self.time + max(0.0, delay), self._seq, callback)
        self._seq += 1
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> List[FakeTimer]:
        return [t for t in self._timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.time + seconds
        while True:
            due = [t for t in self.pending if t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.seq))
            self._timers.remove(timer)
            self.time = max(self.time, timer.when)
            timer.callback()
        self.time = target


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Virtual-clock scheduler starting at t=0."""
    return FakeScheduler()


@pytest.fixture
def late_scheduler() -> FakeScheduler:
    """Virtual-clock scheduler starting well after any throttle window."""
    return FakeScheduler(start=1000.0)
