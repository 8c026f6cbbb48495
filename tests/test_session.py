"""Tests for core/session.py — the writing session state machine."""

import logging

import pytest

from core.errors import ValidationError
from core.models import (
    GOAL_TIME,
    GOAL_WORDS,
    PHASE_ACTIVE,
    PHASE_EMERGENCY_EXITED,
    PHASE_GOAL_REACHED,
    PHASE_IDLE,
    SAVE_ERROR,
    SAVE_SAVED,
    SaveResult,
)
from core.persistence import PersistenceGateway
from core.session import AUTOSAVE_INTERVAL, TICK_INTERVAL, SessionController


def words(n, prefix="w"):
    return " ".join(f"{prefix}{i}" for i in range(n))


def goal_events(controller):
    events = []
    controller.on_goal_reached = events.append
    return events


class FlakyGateway(PersistenceGateway):
    """Gateway whose save_content fails until told otherwise."""

    def __init__(self, root):
        super().__init__(root)
        self.failing = True

    def save_content(self, text):
        if self.failing:
            return SaveResult(success=False, error="disk full")
        return super().save_content(text)


# ── Start ──────────────────────────────────────────────────────


def test_start_session_strict(controller, enforcer, scheduler, clock, hook_calls):
    config = controller.start_session(GOAL_WORDS, "100", strict_mode=True, text="already here")
    assert config.goal_value == 100
    assert controller.state.phase == PHASE_ACTIVE
    assert controller.state.start_time == clock.now
    assert controller.state.start_word_count == 2
    assert enforcer.engaged
    assert len(scheduler.active(TICK_INTERVAL)) == 1
    assert len(scheduler.active(AUTOSAVE_INTERVAL)) == 1
    assert controller.is_locked
    assert hook_calls[0][0] == "on_session_start"
    assert hook_calls[0][1]["goalValue"] == 100


def test_start_session_relaxed_skips_lockdown(controller, enforcer):
    controller.start_session(GOAL_TIME, 25, strict_mode=False)
    assert controller.state.phase == PHASE_ACTIVE
    assert enforcer.engage_count == 0
    assert not controller.is_locked


@pytest.mark.parametrize("raw", ["5", "abc", None, 50001])
def test_invalid_goal_keeps_idle(controller, enforcer, scheduler, raw):
    with pytest.raises(ValidationError):
        controller.start_session(GOAL_WORDS, raw)
    assert controller.state.phase == PHASE_IDLE
    assert controller.config is None
    assert enforcer.engage_count == 0
    assert scheduler.timers == []


def test_start_twice_rejected(controller):
    controller.start_session(GOAL_WORDS, 100)
    with pytest.raises(ValueError, match="already active"):
        controller.start_session(GOAL_WORDS, 100)


# ── Word goal ──────────────────────────────────────────────────


@pytest.mark.parametrize("goal", [10, 100, 50000])
def test_word_goal_fires_exactly_once(controller, goal):
    events = goal_events(controller)
    controller.start_session(GOAL_WORDS, goal)

    controller.update_text(words(goal - 1))
    assert events == []
    assert controller.state.phase == PHASE_ACTIVE

    controller.update_text(words(goal))
    controller.update_text(words(goal + 5))
    assert len(events) == 1
    assert events[0].words == goal
    assert events[0].completed is True
    assert controller.state.phase == PHASE_GOAL_REACHED


def test_word_goal_counts_only_new_words(controller):
    events = goal_events(controller)
    existing = words(50, prefix="old")
    controller.start_session(GOAL_WORDS, 10, text=existing)

    controller.update_text(existing + " " + words(9))
    assert events == []
    controller.update_text(existing + " " + words(10))
    assert len(events) == 1


def test_deleting_below_start_clamps_to_zero(controller):
    controller.start_session(GOAL_WORDS, 10, text=words(20))
    controller.update_text(words(5))
    assert controller.stats().words == 0
    assert controller.progress().fraction == 0.0


def test_goal_latch_survives_dip_and_recross(controller):
    events = goal_events(controller)
    controller.start_session(GOAL_WORDS, 10)
    controller.update_text(words(10))
    controller.update_text(words(3))
    controller.update_text(words(12))
    assert len(events) == 1
    assert controller.state.goal_triggered


def test_goal_reached_effects(controller, enforcer, scheduler, gateway, hook_calls):
    controller.start_session(GOAL_WORDS, 10, strict_mode=True)
    controller.update_text(words(10))

    # Tick keeps running; autosave stops
    assert len(scheduler.active(TICK_INTERVAL)) == 1
    assert scheduler.active(AUTOSAVE_INTERVAL) == []
    assert not enforcer.engaged
    assert not controller.is_locked
    assert gateway.load_draft().content == words(10)
    assert controller.save_status == SAVE_SAVED
    assert "on_goal_reached" in [point for point, _ in hook_calls]
    assert controller.progress().label == "Goal reached!"


def test_word_goal_ignores_ticks(controller, clock):
    events = goal_events(controller)
    controller.start_session(GOAL_WORDS, 10)
    clock.advance(10_000)
    controller.tick()
    assert events == []
    assert controller.state.elapsed_seconds == 10_000


# ── Time goal ──────────────────────────────────────────────────


@pytest.mark.parametrize("minutes", [1, 25, 480])
def test_time_goal_after_clock_jump_fires_once(controller, clock, minutes):
    events = goal_events(controller)
    controller.start_session(GOAL_TIME, minutes)

    clock.advance(minutes * 60 - 1)
    controller.tick()
    assert events == []

    # One tick after a long suspension
    clock.advance(3600)
    controller.tick()
    controller.tick()
    assert len(events) == 1
    assert controller.state.phase == PHASE_GOAL_REACHED
    assert controller.state.elapsed_seconds == minutes * 60 - 1 + 3600


def test_time_goal_ignores_typing(controller):
    events = goal_events(controller)
    controller.start_session(GOAL_TIME, 1)
    controller.update_text(words(5000))
    assert events == []


def test_elapsed_never_decreases(controller, clock):
    controller.start_session(GOAL_TIME, 25)
    clock.advance(120)
    controller.tick()
    clock.advance(-60)
    controller.tick()
    assert controller.state.elapsed_seconds == 120


def test_tick_continues_after_goal(controller, clock):
    controller.start_session(GOAL_TIME, 1)
    clock.advance(60)
    controller.tick()
    clock.advance(30)
    controller.tick()
    assert controller.state.elapsed_seconds == 90
    assert controller.state.phase == PHASE_GOAL_REACHED


# ── Keep writing ───────────────────────────────────────────────


def test_keep_writing_words(controller, enforcer):
    events = goal_events(controller)
    controller.start_session(GOAL_WORDS, 100, strict_mode=True)
    controller.update_text(words(100))

    config = controller.keep_writing()
    assert config.goal_value == 120
    assert controller.state.phase == PHASE_ACTIVE
    assert controller.state.goal_triggered is False
    assert enforcer.engaged
    assert enforcer.engage_count == 2

    controller.update_text(words(119))
    assert len(events) == 1
    controller.update_text(words(120))
    controller.update_text(words(121))
    assert len(events) == 2


def test_keep_writing_time(controller, clock):
    events = goal_events(controller)
    controller.start_session(GOAL_TIME, 25, strict_mode=False)
    clock.advance(25 * 60)
    controller.tick()

    assert controller.keep_writing().goal_value == 35
    controller.tick()
    assert len(events) == 1
    clock.advance(10 * 60)
    controller.tick()
    assert len(events) == 2


def test_keep_writing_has_no_duplicate_timers(controller, scheduler):
    controller.start_session(GOAL_WORDS, 10)
    controller.update_text(words(10))
    controller.keep_writing()
    assert len(scheduler.active(TICK_INTERVAL)) == 1
    assert len(scheduler.active(AUTOSAVE_INTERVAL)) == 1
    assert len(scheduler.active()) == 2


def test_keep_writing_requires_goal_reached(controller):
    with pytest.raises(ValueError):
        controller.keep_writing()
    controller.start_session(GOAL_WORDS, 10)
    with pytest.raises(ValueError):
        controller.keep_writing()


# ── Save and exit ──────────────────────────────────────────────


def test_save_and_exit_after_goal(controller, gateway, enforcer, scheduler, clock, workspace):
    ended = []
    controller.on_session_ended = lambda phase, entry: ended.append((phase, entry))
    controller.start_session(GOAL_WORDS, 10, strict_mode=True)
    clock.advance(90)
    controller.tick()
    controller.update_text(words(12))

    entry = controller.save_and_exit()
    assert entry.completed is True
    assert entry.words_written == 12
    assert entry.duration == "01:30"
    assert entry.goal_type == GOAL_WORDS
    assert entry.goal_value == 10

    archive = workspace / "drafts" / entry.draft_path.split("/")[-1]
    assert archive.exists()
    text = archive.read_text(encoding="utf-8")
    assert "# Words: 12" in text
    assert text.endswith(words(12))

    assert gateway.load_session_history() == [entry]
    assert controller.state.phase == PHASE_IDLE
    assert controller.config is None
    assert not enforcer.engaged
    assert scheduler.active() == []
    assert ended == [(PHASE_IDLE, entry)]


def test_save_and_exit_before_goal_is_incomplete(controller, gateway, enforcer):
    controller.start_session(GOAL_WORDS, 500, strict_mode=True)
    controller.update_text(words(30))
    entry = controller.save_and_exit()
    assert entry.completed is False
    assert entry.words_written == 30
    assert not enforcer.engaged
    assert gateway.load_session_history()[0].completed is False


def test_save_and_exit_blank_draft_skips_archive(controller, gateway, workspace):
    controller.start_session(GOAL_TIME, 5, strict_mode=False)
    controller.update_text("   \n")
    entry = controller.save_and_exit()
    assert entry.draft_path is None
    assert not (workspace / "drafts").exists()
    assert len(gateway.load_session_history()) == 1


def test_save_and_exit_idle_rejected(controller):
    with pytest.raises(ValueError, match="No active writing session"):
        controller.save_and_exit()


def test_session_end_hook_gets_entry(controller, hook_calls):
    controller.start_session(GOAL_WORDS, 10, strict_mode=False)
    controller.update_text(words(4))
    controller.save_and_exit()
    point, ctx = hook_calls[-1]
    assert point == "on_session_end"
    assert ctx["words"] == 4
    assert ctx["completed"] is False


# ── Emergency exit ─────────────────────────────────────────────


@pytest.mark.parametrize("phrase", ["I GIVE UP", "i give up", "  I Give Up  "])
def test_emergency_exit(controller, gateway, enforcer, scheduler, workspace, phrase):
    ended = []
    controller.on_session_ended = lambda phase, entry: ended.append((phase, entry))
    controller.start_session(GOAL_WORDS, 500, strict_mode=True)
    controller.update_text(words(42))

    assert controller.emergency_exit(phrase) is True
    assert controller.state.phase == PHASE_IDLE
    assert ended == [(PHASE_EMERGENCY_EXITED, None)]
    assert not enforcer.engaged
    assert scheduler.active() == []

    assert gateway.load_draft().content == words(42)
    assert gateway.load_session_history() == []
    assert not (workspace / "drafts").exists()


def test_emergency_exit_wrong_phrase(controller, enforcer):
    controller.start_session(GOAL_WORDS, 500, strict_mode=True)
    assert controller.emergency_exit("I give") is False
    assert controller.emergency_exit("") is False
    assert controller.state.phase == PHASE_ACTIVE
    assert enforcer.engaged


def test_emergency_exit_when_idle(controller):
    assert controller.emergency_exit("I GIVE UP") is False


def test_emergency_exit_logged(controller, caplog):
    controller.start_session(GOAL_WORDS, 500)
    with caplog.at_level(logging.WARNING, logger="core.session"):
        controller.emergency_exit("I GIVE UP")
    assert "Emergency exit" in caplog.text


# ── Close attempts ─────────────────────────────────────────────


def test_close_suppressed_in_strict_session(controller):
    warnings = []
    controller.on_exit_warning = lambda: warnings.append(True)
    controller.start_session(GOAL_WORDS, 500, strict_mode=True)

    assert controller.request_close() is False
    assert controller.request_close() is False
    assert len(warnings) == 2
    assert controller.state.phase == PHASE_ACTIVE


def test_close_allowed_after_goal(controller):
    controller.start_session(GOAL_WORDS, 10, strict_mode=True)
    controller.update_text(words(10))
    assert controller.request_close() is True


def test_close_allowed_when_relaxed_or_idle(controller):
    assert controller.request_close() is True
    controller.start_session(GOAL_WORDS, 500, strict_mode=False)
    assert controller.request_close() is True


def test_shutdown_flushes_draft(controller, gateway, enforcer):
    controller.start_session(GOAL_WORDS, 500, strict_mode=True)
    controller.update_text("last words")
    controller.shutdown()
    assert gateway.load_draft().content == "last words"
    assert not enforcer.engaged
    assert controller.state.phase == PHASE_IDLE
    assert gateway.load_session_history() == []


# ── Autosave ───────────────────────────────────────────────────


def test_autosave_writes_draft(controller, scheduler, gateway):
    controller.start_session(GOAL_WORDS, 500)
    controller.update_text("some progress")
    scheduler.fire(AUTOSAVE_INTERVAL)
    assert gateway.load_draft().content == "some progress"
    assert controller.save_status == SAVE_SAVED


def test_autosave_failure_sets_error_and_recovers(workspace, scheduler, clock):
    gateway = FlakyGateway(workspace)
    controller = SessionController(gateway, scheduler=scheduler, clock=clock,
                                   hook_runner=lambda point, ctx: None)
    statuses = []
    controller.on_save_status = lambda status, error: statuses.append((status, error))
    controller.start_session(GOAL_WORDS, 500)
    controller.update_text("words")

    scheduler.fire(AUTOSAVE_INTERVAL)
    assert controller.save_status == SAVE_ERROR
    assert controller.save_error == "disk full"
    assert controller.state.phase == PHASE_ACTIVE
    assert (SAVE_ERROR, "disk full") in statuses

    gateway.failing = False
    scheduler.fire(AUTOSAVE_INTERVAL)
    assert controller.save_status == SAVE_SAVED
    assert controller.save_error is None


def test_autosave_idle_is_noop(controller):
    assert controller.autosave() is None


# ── Start fresh ────────────────────────────────────────────────


def test_start_fresh_archives_and_clears(controller, gateway, workspace):
    gateway.save_content("yesterday's pages")
    assert controller.start_fresh() is True
    assert gateway.load_draft().is_empty
    archived = list((workspace / "drafts").iterdir())
    assert len(archived) == 1
    assert archived[0].read_text(encoding="utf-8").endswith("yesterday's pages")
    assert gateway.load_session_history() == []


def test_start_fresh_rejected_while_running(controller):
    controller.start_session(GOAL_WORDS, 500)
    with pytest.raises(ValueError):
        controller.start_fresh()


def test_load_history_corrupt_surfaces_error(controller, workspace):
    errors = []
    controller.on_error = errors.append
    (workspace / "sessions.json").write_text("not json", encoding="utf-8")
    assert controller.load_history() == []
    assert len(errors) == 1


# ── After an emergency exit ────────────────────────────────────


def test_new_session_after_emergency_exit_resumes_saved_draft(controller, gateway, workspace):
    controller.start_session(GOAL_WORDS, 500, strict_mode=True)
    controller.update_text(words(37))
    assert controller.emergency_exit("I GIVE UP")
    assert controller.state.phase == PHASE_IDLE

    draft = controller.load_draft()
    assert draft.content == words(37)

    controller.start_session(GOAL_WORDS, 100, strict_mode=True, text=draft.content)
    assert controller.state.phase == PHASE_ACTIVE
    assert controller.state.start_word_count == 37
    assert controller.stats().words == 0
    assert not (workspace / "drafts").exists()
    assert gateway.load_session_history() == []


def test_emergency_exit_in_relaxed_session(controller, gateway, enforcer):
    controller.start_session(GOAL_TIME, 25, strict_mode=False)
    controller.update_text("a few words")
    assert controller.emergency_exit("i give up") is True
    assert controller.state.phase == PHASE_IDLE
    assert enforcer.release_count == 0
    assert gateway.load_draft().content == "a few words"
    assert gateway.load_session_history() == []


def test_emergency_exit_after_goal_reached(controller, gateway):
    controller.start_session(GOAL_WORDS, 10, strict_mode=True)
    controller.update_text(words(10))
    assert controller.state.phase == PHASE_GOAL_REACHED
    assert controller.emergency_exit("I GIVE UP") is True
    assert controller.state.phase == PHASE_IDLE
    assert gateway.load_session_history() == []


def test_load_history_with_bad_number_is_not_fatal(controller, workspace):
    errors = []
    controller.on_error = errors.append
    (workspace / "sessions.json").write_text(
        '[{"date": "2026-02-11T09:30:00", "words": "many", "completed": true}]',
        encoding="utf-8",
    )
    history = controller.load_history()
    assert len(history) == 1
    assert history[0].words_written == 0
    assert errors == []
