"""Writing session controller for FocusWriter.

Owns the single SessionState and drives it through

    idle -> active -> goal_reached -> active (keep writing)
    active | goal_reached -> idle (save and exit)
    active | goal_reached -> emergency_exited -> idle

The controller knows nothing about widgets. A UI feeds it editor text and
user actions and listens through the on_* callbacks; a scheduler (Textual's
App, or a fake in tests) calls tick() every second and autosave() every ten.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from core.errors import PersistenceError
from core.goals import (
    count_words,
    extend_goal,
    format_duration,
    is_emergency_phrase,
    is_goal_met,
    progress_view,
    validate_goal,
    words_written,
)
from core.hooks import run_hooks
from core.lockdown import LockdownEnforcer, NullEnforcer
from core.models import (
    GOAL_TIME,
    GOAL_WORDS,
    PHASE_ACTIVE,
    PHASE_EMERGENCY_EXITED,
    PHASE_GOAL_REACHED,
    PHASE_IDLE,
    SAVE_ERROR,
    SAVE_IDLE,
    SAVE_SAVED,
    SAVE_SAVING,
    DraftRecord,
    ProgressView,
    SaveResult,
    SessionConfig,
    SessionHistoryEntry,
    SessionState,
    SessionStats,
)
from core.persistence import PersistenceGateway
from core.timer import IntervalHandle, Scheduler, advance_elapsed
from core.workspace import now_local

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1.0
AUTOSAVE_INTERVAL = 10.0

HookRunner = Callable[[str, dict[str, Any]], object]


class SessionController:
    """State machine for one writing session at a time."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        enforcer: LockdownEnforcer | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.time,
        hook_runner: HookRunner | None = None,
    ):
        self.gateway = gateway
        self.enforcer = enforcer if enforcer is not None else NullEnforcer()
        self.scheduler = scheduler
        self.clock = clock
        self.hook_runner = hook_runner if hook_runner is not None else self._run_hooks

        self.state = SessionState()
        self.config: SessionConfig | None = None
        self.text = ""
        self.save_status = SAVE_IDLE
        self.save_error: str | None = None

        self._tick_handle: IntervalHandle | None = None
        self._autosave_handle: IntervalHandle | None = None

        # Observer callbacks, set by the UI
        self.on_state_change: Callable[[SessionState], None] | None = None
        self.on_goal_reached: Callable[[SessionStats], None] | None = None
        self.on_save_status: Callable[[str, str | None], None] | None = None
        self.on_exit_warning: Callable[[], None] | None = None
        self.on_session_ended: Callable[[str, SessionHistoryEntry | None], None] | None = None
        self.on_error: Callable[[str], None] | None = None

    # ── Queries ────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self.state.phase in (PHASE_ACTIVE, PHASE_GOAL_REACHED)

    @property
    def is_locked(self) -> bool:
        """True while close attempts are suppressed."""
        return (
            self.state.phase == PHASE_ACTIVE
            and self.config is not None
            and self.config.strict_mode
        )

    def stats(self) -> SessionStats:
        if self.config is None:
            return SessionStats()
        return SessionStats(
            words=words_written(self.state.current_word_count, self.state.start_word_count),
            duration=format_duration(self.state.elapsed_seconds),
            goal_type=self.config.goal_type,
            goal_value=self.config.goal_value,
            completed=self.state.goal_triggered,
        )

    def progress(self) -> ProgressView:
        if self.config is None:
            return ProgressView()
        return progress_view(self.config, self.state)

    # ── Startup reads ──────────────────────────────────────────

    def load_draft(self) -> DraftRecord:
        try:
            return self.gateway.load_draft()
        except PersistenceError as e:
            self._surface_error(str(e))
            return DraftRecord()

    def load_history(self) -> list[SessionHistoryEntry]:
        try:
            return self.gateway.load_session_history()
        except PersistenceError as e:
            self._surface_error(str(e))
            return []

    def start_fresh(self) -> bool:
        """Archive the current draft (no history entry) and clear it."""
        if self.is_running:
            raise ValueError("Cannot start fresh while a session is running.")
        draft = self.load_draft()
        if not draft.is_empty:
            try:
                self.gateway.archive_draft(
                    draft.content, SessionStats(words=count_words(draft.content))
                )
            except PersistenceError as e:
                self._surface_error(str(e))
                return False
        result = self.gateway.clear_draft()
        if not result.success:
            self._surface_error(result.error or "Could not clear draft")
        return result.success

    # ── Transitions ────────────────────────────────────────────

    def start_session(
        self,
        goal_type: str,
        raw_value: Any,
        strict_mode: bool = True,
        text: str = "",
    ) -> SessionConfig:
        """Idle -> active. Raises ValidationError on a bad goal."""
        if self.state.phase != PHASE_IDLE:
            raise ValueError("A writing session is already active. Exit it first.")

        goal_value = validate_goal(goal_type, raw_value)
        self.config = SessionConfig(
            goal_type=goal_type,
            goal_value=goal_value,
            strict_mode=bool(strict_mode),
        )

        self.text = text
        words = count_words(text)
        self.state.phase = PHASE_ACTIVE
        self.state.start_time = self.clock()
        self.state.start_word_count = words
        self.state.current_word_count = words
        self.state.elapsed_seconds = 0
        self.state.goal_triggered = False
        self.save_status = SAVE_IDLE
        self.save_error = None

        if self.config.strict_mode:
            self.enforcer.engage()
        self._start_timers()

        logger.info(
            "Session started: goal=%d %s strict=%s start_words=%d",
            goal_value,
            "words" if goal_type == GOAL_WORDS else "minutes",
            self.config.strict_mode,
            words,
        )
        self.hook_runner("on_session_start", self._hook_context())
        self._notify_state()
        return self.config

    def update_text(self, text: str) -> None:
        """Editor content changed. Evaluates a word goal."""
        self.text = text
        if not self.is_running:
            return
        self.state.current_word_count = count_words(text)
        self._set_save_status(SAVE_SAVING)

        if (
            self.state.phase == PHASE_ACTIVE
            and self.config.goal_type == GOAL_WORDS
            and not self.state.goal_triggered
            and is_goal_met(self.config, self.state)
        ):
            self._goal_reached()
        self._notify_state()

    def tick(self) -> None:
        """Recompute elapsed time from the wall clock. Evaluates a time goal."""
        if not self.is_running or self.state.start_time is None:
            return
        self.state.elapsed_seconds = advance_elapsed(
            self.state.elapsed_seconds, self.state.start_time, self.clock()
        )

        if (
            self.state.phase == PHASE_ACTIVE
            and self.config.goal_type == GOAL_TIME
            and not self.state.goal_triggered
            and is_goal_met(self.config, self.state)
        ):
            self._goal_reached()
        self._notify_state()

    def _goal_reached(self) -> None:
        # Latch first so nothing below can fire it twice.
        self.state.goal_triggered = True
        self.state.phase = PHASE_GOAL_REACHED

        self._stop_autosave()
        self._save()
        if self.config.strict_mode:
            self.enforcer.release()

        stats = self.stats()
        logger.info(
            "Goal reached: %d words in %s (goal %d %s)",
            stats.words, stats.duration, stats.goal_value, stats.goal_type,
        )
        if self.on_goal_reached:
            self.on_goal_reached(stats)
        self.hook_runner("on_goal_reached", self._hook_context())

    def keep_writing(self) -> SessionConfig:
        """Goal reached -> active with a larger goal."""
        if self.state.phase != PHASE_GOAL_REACHED:
            raise ValueError("Keep writing is only available after the goal is reached.")

        self._stop_timers()
        previous = self.config.goal_value
        self.config = extend_goal(self.config)
        self.state.goal_triggered = False
        self.state.phase = PHASE_ACTIVE
        self._start_timers()
        if self.config.strict_mode:
            self.enforcer.engage()

        logger.info("Keep writing: goal %d -> %d", previous, self.config.goal_value)
        self.hook_runner("on_keep_writing", self._hook_context())
        self._notify_state()
        return self.config

    def save_and_exit(self) -> SessionHistoryEntry:
        """Active or goal reached -> idle, with archive and history entry."""
        if not self.is_running:
            raise ValueError("No active writing session to exit.")

        self._stop_timers()
        stats = self.stats()
        content = self.text

        self._save()
        draft_path = None
        if content.strip():
            try:
                draft_path = self.gateway.archive_draft(content, stats)
            except PersistenceError as e:
                self._surface_error(str(e))

        entry = SessionHistoryEntry(
            timestamp=now_local().isoformat(timespec="seconds"),
            words_written=stats.words,
            duration=stats.duration,
            goal_type=stats.goal_type,
            goal_value=stats.goal_value,
            completed=self.state.goal_triggered,
            draft_path=str(draft_path) if draft_path else None,
        )
        try:
            self.gateway.append_session_history(entry)
        except PersistenceError as e:
            self._surface_error(str(e))

        if self.config.strict_mode:
            self.enforcer.release()

        logger.info(
            "Session ended: %d words in %s, completed=%s",
            entry.words_written, entry.duration, entry.completed,
        )
        self.hook_runner("on_session_end", {**self._hook_context(), **entry.to_dict()})
        self._reset()
        if self.on_session_ended:
            self.on_session_ended(PHASE_IDLE, entry)
        self._notify_state()
        return entry

    def emergency_exit(self, phrase: str) -> bool:
        """Leave immediately if phrase is the emergency phrase.

        Accepted in any running session, strict or relaxed, active or past
        its goal; the prompt is only forced on the writer in strict Active.
        Saves the live draft only: no archive, no history entry.
        """
        if not is_emergency_phrase(phrase) or not self.is_running:
            return False

        self._stop_timers()
        self._save()
        self.enforcer.release()
        self.state.phase = PHASE_EMERGENCY_EXITED

        logger.warning(
            "Emergency exit after %s with %d words written",
            format_duration(self.state.elapsed_seconds),
            words_written(self.state.current_word_count, self.state.start_word_count),
        )
        self.hook_runner("on_emergency_exit", self._hook_context())
        if self.on_session_ended:
            self.on_session_ended(PHASE_EMERGENCY_EXITED, None)
        self._reset()
        self._notify_state()
        return True

    def request_close(self) -> bool:
        """Host wants to close. Returns False if the close is suppressed."""
        if self.is_locked:
            logger.info("Close attempt suppressed during strict session")
            if self.on_exit_warning:
                self.on_exit_warning()
            return False
        return True

    def shutdown(self) -> None:
        """The application is exiting: flush, release and stop."""
        if self.is_running:
            self._stop_timers()
            self._save()
            logger.info("Shutdown during session; draft flushed")
        self.enforcer.release()
        self._reset()

    # ── Autosave ───────────────────────────────────────────────

    def autosave(self) -> SaveResult | None:
        if self.state.phase != PHASE_ACTIVE:
            return None
        return self._save()

    def _save(self) -> SaveResult:
        result = self.gateway.save_content(self.text)
        if result.success:
            self.save_error = None
            self._set_save_status(SAVE_SAVED)
        else:
            # Retried by the next autosave tick; no backoff, no queue.
            self.save_error = result.error or "Failed to save your work"
            logger.warning("Autosave failed: %s", self.save_error)
            self._set_save_status(SAVE_ERROR)
        return result

    def _set_save_status(self, status: str) -> None:
        self.save_status = status
        if self.on_save_status:
            self.on_save_status(status, self.save_error)

    # ── Timers ─────────────────────────────────────────────────

    def _start_timers(self) -> None:
        self._stop_timers()
        if self.scheduler is None:
            return
        self._tick_handle = self.scheduler.set_interval(TICK_INTERVAL, self.tick)
        self._autosave_handle = self.scheduler.set_interval(AUTOSAVE_INTERVAL, self.autosave)

    def _stop_autosave(self) -> None:
        if self._autosave_handle is not None:
            self._autosave_handle.stop()
            self._autosave_handle = None

    def _stop_timers(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.stop()
            self._tick_handle = None
        self._stop_autosave()

    # ── Helpers ────────────────────────────────────────────────

    def _reset(self) -> None:
        self._stop_timers()
        self.state.reset()
        self.config = None
        self.save_status = SAVE_IDLE
        self.save_error = None

    def _notify_state(self) -> None:
        if self.on_state_change:
            self.on_state_change(self.state)

    def _surface_error(self, message: str) -> None:
        logger.error(message)
        if self.on_error:
            self.on_error(message)

    def _hook_context(self) -> dict[str, Any]:
        ctx: dict[str, Any] = {
            "phase": self.state.phase,
            "elapsedSeconds": self.state.elapsed_seconds,
            "wordsWritten": words_written(
                self.state.current_word_count, self.state.start_word_count
            ),
        }
        if self.config is not None:
            ctx.update(self.config.to_dict())
        return ctx

    def _run_hooks(self, hook_point: str, context: dict[str, Any]) -> object:
        return run_hooks(hook_point, context, self.gateway.root)
