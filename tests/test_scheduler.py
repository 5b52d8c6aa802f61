"""Tests for the background accrual scheduler."""

import threading

import pytest

from propfin.domain.scheduler import DEFAULT_INTERVAL, AccrualScheduler, interval_from_env


class FakeSweep:
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0
        self.called = threading.Event()

    def __call__(self):
        self.calls += 1
        self.called.set()
        result = self.results.pop(0) if self.results else 0
        if isinstance(result, Exception):
            raise result
        return result


def test_run_once_returns_sweep_result():
    scheduler = AccrualScheduler(FakeSweep([3]), interval=60)
    assert scheduler.run_once() == 3
    assert (scheduler.runs, scheduler.failures) == (1, 0)


def test_failed_sweep_is_contained(caplog):
    scheduler = AccrualScheduler(FakeSweep([RuntimeError("db locked"), 2]), interval=60)

    assert scheduler.run_once() is None
    assert scheduler.run_once() == 2
    assert scheduler.failures == 1
    assert "Rent accrual sweep failed" in caplog.text


def test_start_runs_immediately_and_stop_joins():
    sweep = FakeSweep([1])
    scheduler = AccrualScheduler(sweep, interval=3600)

    scheduler.start()
    try:
        assert sweep.called.wait(5)
        assert scheduler.running
    finally:
        scheduler.stop(timeout=5)

    assert not scheduler.running
    assert sweep.calls == 1


def test_start_twice_keeps_one_worker():
    sweep = FakeSweep([])
    scheduler = AccrualScheduler(sweep, interval=3600)

    scheduler.start()
    first = scheduler._thread
    scheduler.start()
    try:
        assert scheduler._thread is first
    finally:
        scheduler.stop(timeout=5)


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        AccrualScheduler(FakeSweep([]), interval=0)


def test_interval_from_env(monkeypatch):
    monkeypatch.delenv("PROPFIN_SWEEP_INTERVAL", raising=False)
    assert interval_from_env() == DEFAULT_INTERVAL

    monkeypatch.setenv("PROPFIN_SWEEP_INTERVAL", "90")
    assert interval_from_env() == 90.0

    monkeypatch.setenv("PROPFIN_SWEEP_INTERVAL", "soon")
    with pytest.raises(ValueError):
        interval_from_env()
