"""Tests for core/timer.py — wall-clock elapsed time."""

import logging

from core.timer import SUSPEND_THRESHOLD_SECONDS, advance_elapsed, compute_elapsed


def test_compute_elapsed_floors():
    assert compute_elapsed(100.0, 100.9) == 0
    assert compute_elapsed(100.0, 161.5) == 61


def test_compute_elapsed_never_negative():
    assert compute_elapsed(100.0, 50.0) == 0


def test_advance_elapsed_normal_tick(caplog):
    with caplog.at_level(logging.INFO, logger="core.timer"):
        assert advance_elapsed(10, 0.0, 11.2) == 11
    assert "time jump" not in caplog.text


def test_advance_elapsed_after_suspend(caplog):
    """A long gap adopts the wall-clock value in one step and is logged."""
    with caplog.at_level(logging.INFO, logger="core.timer"):
        assert advance_elapsed(10, 0.0, 1510.0) == 1510
    assert "Detected time jump of 1500 seconds" in caplog.text


def test_advance_elapsed_small_gap_not_logged(caplog):
    with caplog.at_level(logging.INFO, logger="core.timer"):
        assert advance_elapsed(10, 0.0, 10.0 + SUSPEND_THRESHOLD_SECONDS) == 15
    assert caplog.records == []


def test_advance_elapsed_clock_moved_back(caplog):
    with caplog.at_level(logging.WARNING, logger="core.timer"):
        assert advance_elapsed(300, 0.0, 200.0) == 300
    assert "moved back" in caplog.text
