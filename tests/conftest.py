"""Shared test fixtures for FocusWriter tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from core.lockdown import NullEnforcer
from core.persistence import PersistenceGateway
from core.session import SessionController


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, interval: float, callback) -> None:
        self.interval = interval
        self.callback = callback
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakeScheduler:
    """Records intervals; tests fire them by hand."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def set_interval(self, interval: float, callback) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    def active(self, interval: float | None = None) -> list[FakeTimer]:
        return [
            t for t in self.timers
            if not t.stopped and (interval is None or t.interval == interval)
        ]

    def fire(self, interval: float) -> None:
        for timer in self.active(interval):
            timer.callback()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary writer workspace and point FOCUSWRITER_ROOT at it."""
    root = tmp_path / "Focus Writer Pro"
    root.mkdir(parents=True)

    os.environ["FOCUSWRITER_ROOT"] = str(root)
    yield root
    if "FOCUSWRITER_ROOT" in os.environ:
        del os.environ["FOCUSWRITER_ROOT"]


@pytest.fixture
def gateway(workspace: Path) -> PersistenceGateway:
    return PersistenceGateway(workspace)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def enforcer() -> NullEnforcer:
    return NullEnforcer()


@pytest.fixture
def hook_calls() -> list[tuple[str, dict]]:
    return []


@pytest.fixture
def controller(gateway, enforcer, scheduler, clock, hook_calls) -> SessionController:
    return SessionController(
        gateway,
        enforcer=enforcer,
        scheduler=scheduler,
        clock=clock,
        hook_runner=lambda point, ctx: hook_calls.append((point, ctx)),
    )
