"""Test render counting and timing diagnostics."""

from __future__ import annotations

import logging

from perfkit.monitoring import PerformanceMonitor


class StepClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_track_render_counts_and_warns(caplog):
    """More than eleven renders of one component triggers a warning."""
    monitor = PerformanceMonitor(enabled=True)

    with caplog.at_level(logging.WARNING):
        for _ in range(11):
            monitor.track_render("Journal")
        assert not caplog.records

        monitor.track_render("Journal")

    assert monitor.get_stats() == {"Journal": 12}
    assert "Journal has rendered 12 times" in caplog.records[0].getMessage()


def test_measure_over_frame_budget_warns(caplog):
    """Measures longer than 16 ms are reported."""
    clock = StepClock()
    monitor = PerformanceMonitor(enabled=True, clock=clock)

    monitor.start_measure("Dashboard")
    clock.now = 0.020
    with caplog.at_level(logging.WARNING):
        duration = monitor.end_measure("Dashboard")

    assert duration == 20.0
    assert "frame budget" in caplog.records[0].getMessage()


def test_fast_measure_is_quiet(caplog):
    """Measures within budget return a duration without logging."""
    clock = StepClock()
    monitor = PerformanceMonitor(enabled=True, clock=clock)

    monitor.start_measure("Navbar")
    clock.now = 0.005
    with caplog.at_level(logging.WARNING):
        assert monitor.end_measure("Navbar") == 5.0
    assert not caplog.records
    assert monitor.end_measure("Navbar") is None


def test_disabled_monitor_is_noop():
    """A disabled monitor records nothing."""
    monitor = PerformanceMonitor(enabled=False)
    monitor.track_render("X")
    monitor.start_measure("X")
    assert monitor.end_measure("X") is None
    assert monitor.get_stats() is None


def test_enabled_defaults_from_environment(monkeypatch):
    """PERFKIT_DEBUG turns the monitor on."""
    monkeypatch.setenv("PERFKIT_DEBUG", "true")
    assert PerformanceMonitor().enabled is True

    monkeypatch.setenv("PERFKIT_DEBUG", "false")
    assert PerformanceMonitor().enabled is False


def test_print_report_sorted_with_severity(caplog):
    """Report lists components by render count with a severity tag."""
    monitor = PerformanceMonitor(enabled=True)
    for _ in range(25):
        monitor.track_render("Hot")
    for _ in range(3):
        monitor.track_render("Cold")

    with caplog.at_level(logging.INFO):
        monitor.print_report()

    lines = [r.getMessage() for r in caplog.records if r.levelname == "INFO"]
    assert lines[0] == "Performance report"
    assert lines[1] == "[high] Hot: 25 renders"
    assert lines[2] == "[ok] Cold: 3 renders"


def test_track_renders_decorator_and_reset():
    """The decorator counts calls; reset() forgets them."""
    monitor = PerformanceMonitor(enabled=True)

    @monitor.track_renders("Card")
    def render(value):
        return value

    assert render(5) == 5
    render(6)
    assert monitor.get_stats() == {"Card": 2}

    monitor.reset()
    assert monitor.get_stats() == {}
