#!/usr/bin/env python3
"""Focus Writer TUI — distraction-free writing sessions powered by Textual."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ProgressBar,
    RadioButton,
    RadioSet,
    Static,
    Switch,
    TextArea,
)

from core import (
    CompositeEnforcer,
    DraftRecord,
    GOAL_TIME,
    GOAL_WORDS,
    HookEnforcer,
    LockdownEnforcer,
    PersistenceGateway,
    SessionController,
    SessionHistoryEntry,
    SessionStats,
    ValidationError,
    count_words,
    format_duration,
    format_relative_time,
    get_history_stats,
    is_emergency_phrase,
    log_path,
    presets_for,
    recent_stats_label,
    setup_logger,
    summarize_history,
    writer_root,
)
from core.hooks import run_hooks
from core.models import (
    PHASE_ACTIVE,
    PHASE_EMERGENCY_EXITED,
    PHASE_GOAL_REACHED,
    SAVE_ERROR,
    SAVE_SAVED,
    SAVE_SAVING,
)
from core.workspace import now_local


CSS = """
Screen {
    layout: vertical;
}

.section-title {
    text-style: bold;
    color: $accent;
    padding: 0 1;
    margin: 1 0 0 0;
}

#welcome-view {
    padding: 1 4;
}

#app-title {
    text-style: bold;
    content-align: center middle;
    width: 1fr;
    margin: 1 0;
}

#draft-info {
    height: auto;
    padding: 1 2;
    border: tall $primary-background-darken-2;
}

#draft-preview {
    color: $text-muted;
    height: auto;
    max-height: 5;
}

.row {
    height: auto;
    margin: 1 0 0 0;
}

#goal-input {
    width: 16;
}

#goal-unit {
    padding: 1 1;
}

.preset-row Button {
    min-width: 8;
    margin: 0 1 0 0;
}

#strict-label {
    padding: 1 1;
}

#start-session {
    margin: 1 0;
}

#history-summary {
    color: $text-muted;
    height: auto;
}

#writing-view {
    display: none;
    height: 1fr;
}

#progress-row {
    height: 1;
    padding: 0 2;
}

#progress-text {
    padding: 0 2;
    color: $text-muted;
}

#goal-banner {
    display: none;
    height: auto;
    padding: 0 2;
    background: $success-darken-2;
}

#goal-banner-text {
    width: 1fr;
    padding: 1 0;
}

#editor {
    height: 1fr;
    border: none;
    padding: 1 4;
}

#writing-stats {
    dock: bottom;
    height: 1;
    background: $primary-background;
    color: $text-muted;
    padding: 0 2;
}

#writing-stats Static {
    width: auto;
    margin: 0 3 0 0;
}

#save-indicator.-error {
    color: $error;
    text-style: bold;
}

#persistent-exit {
    display: none;
    height: 1;
    min-width: 14;
    border: none;
}

.modal-body {
    width: 60;
    height: auto;
    padding: 1 2;
    border: thick $error;
    background: $surface;
}

EmergencyScreen, ConfirmFreshScreen {
    align: center middle;
}
"""


# ── Modals ─────────────────────────────────────────────────────


class EmergencyScreen(ModalScreen[str | None]):
    """Prompt for the emergency phrase. Dismisses with the phrase once typed."""

    def compose(self) -> ComposeResult:
        yield Vertical(
            Label("Emergency exit", classes="section-title"),
            Static(
                "Your work will be saved, but this session will not be recorded.\n"
                'Type "I GIVE UP" to leave.'
            ),
            Input(placeholder="I GIVE UP", id="emergency-input"),
            Button("Keep writing", id="cancel-emergency"),
            classes="modal-body",
        )

    def on_mount(self) -> None:
        self.query_one("#emergency-input", Input).focus()

    @on(Input.Changed, "#emergency-input")
    def _on_phrase(self, event: Input.Changed) -> None:
        if is_emergency_phrase(event.value):
            self.dismiss(event.value)

    @on(Button.Pressed, "#cancel-emergency")
    def _on_cancel(self) -> None:
        self.dismiss(None)


class ConfirmFreshScreen(ModalScreen[bool]):
    """Confirm archiving the current draft and starting from a blank page."""

    def compose(self) -> ComposeResult:
        yield Vertical(
            Label("Start fresh?", classes="section-title"),
            Static("The current draft will be archived to drafts/ and the editor cleared."),
            Horizontal(
                Button("Cancel", id="cancel-fresh"),
                Button("Start fresh", id="confirm-fresh", variant="warning"),
                classes="row",
            ),
            classes="modal-body",
        )

    @on(Button.Pressed, "#cancel-fresh")
    def _on_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#confirm-fresh")
    def _on_confirm(self) -> None:
        self.dismiss(True)


# ── Terminal lockdown ──────────────────────────────────────────


class TerminalLockdown(LockdownEnforcer):
    """Hides the app chrome and marks the app locked.

    Keys are not intercepted here. FocusWriterApp.action_quit asks
    SessionController.request_close(), and a refused close opens the
    emergency prompt instead of exiting.
    """

    name = "terminal lockdown"

    def __init__(self, app: FocusWriterApp) -> None:
        super().__init__()
        self.app = app

    def _engage(self) -> None:
        self.app.query_main(Header).display = False
        self.app.sub_title = "locked until goal"

    def _release(self) -> None:
        self.app.query_main(Header).display = True
        self.app.sub_title = ""


# ── Main app ───────────────────────────────────────────────────


class FocusWriterApp(App):
    """Focus Writer — write until the goal is met."""

    TITLE = "Focus Writer"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
        Binding("escape", "emergency", "Emergency exit", priority=True),
        Binding("ctrl+s", "save_exit", "Save & Exit", priority=True),
        Binding("f2", "keep_writing", "Keep writing", priority=True),
    ]

    current_view: reactive[str] = reactive("welcome")

    def __init__(self, root: Path | None = None) -> None:
        super().__init__()
        self.root = root if root is not None else writer_root()
        self.gateway = PersistenceGateway(self.root)
        self.settings = self.gateway.load_settings()
        self.controller = SessionController(
            self.gateway,
            enforcer=CompositeEnforcer(TerminalLockdown(self), HookEnforcer(self.root)),
            scheduler=self,
            hook_runner=self._run_hook,
        )
        self.controller.on_state_change = lambda _state: self._refresh_writing()
        self.controller.on_goal_reached = self._on_goal_reached
        self.controller.on_save_status = self._on_save_status
        self.controller.on_exit_warning = self._show_emergency
        self.controller.on_session_ended = self._on_session_ended
        self.controller.on_error = self._on_error
        self._draft = DraftRecord()
        self._goal_type = self.settings.default_goal_type

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Control which bindings appear in the footer based on session phase."""
        phase = self.controller.state.phase
        if action == "keep_writing":
            return phase == PHASE_GOAL_REACHED
        if action == "save_exit":
            return phase == PHASE_GOAL_REACHED or (
                phase == PHASE_ACTIVE and not self.controller.is_locked
            )
        if action == "emergency":
            return True if self.controller.is_running else None
        return True

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(
            Label("Focus Writer", id="app-title"),
            Vertical(
                Label("", id="draft-title"),
                Static("", id="draft-preview"),
                Button("Start fresh", id="start-fresh", variant="default"),
                id="draft-info",
            ),
            Label("Goal", classes="section-title"),
            RadioSet(
                RadioButton("Words", value=self._goal_type == GOAL_WORDS, id="goal-words"),
                RadioButton("Time", value=self._goal_type == GOAL_TIME, id="goal-time"),
                id="goal-type",
            ),
            Horizontal(
                Input(type="integer", id="goal-input"),
                Label("", id="goal-unit"),
                classes="row",
            ),
            Horizontal(
                *[Button(f"{v:,}", id=f"preset-words-{v}", classes="preset") for v in presets_for(GOAL_WORDS)],
                id="word-presets",
                classes="row preset-row",
            ),
            Horizontal(
                *[Button(f"{v} min", id=f"preset-time-{v}", classes="preset") for v in presets_for(GOAL_TIME)],
                id="time-presets",
                classes="row preset-row",
            ),
            Horizontal(
                Switch(value=self.settings.strict_mode, id="strict-switch"),
                Label("Strict mode: no way out until the goal is met", id="strict-label"),
                classes="row",
            ),
            Button("Start writing", id="start-session", variant="primary"),
            Static("", id="history-summary"),
            id="welcome-view",
        )
        yield Vertical(
            Horizontal(
                ProgressBar(total=100, show_eta=False, id="progress"),
                Label("", id="progress-text"),
                id="progress-row",
            ),
            Horizontal(
                Static("", id="goal-banner-text"),
                Button("Save & Exit", id="banner-save-exit", variant="success"),
                Button("Keep writing", id="banner-keep"),
                Button("×", id="banner-close"),
                id="goal-banner",
            ),
            TextArea(id="editor", tab_behavior="indent", soft_wrap=True),
            Horizontal(
                Static("0 words", id="stat-words"),
                Static("0 chars", id="stat-chars"),
                Static("00:00", id="stat-time"),
                Static("", id="save-indicator"),
                Button("Save & Exit", id="persistent-exit", variant="success"),
                id="writing-stats",
            ),
            id="writing-view",
        )
        yield Footer()

    def query_main(self, selector, expect_type=None):
        """Query the main screen, even while a modal is on top."""
        main = self.screen_stack[0]
        if expect_type is None:
            return main.query_one(selector)
        return main.query_one(selector, expect_type)

    def on_mount(self) -> None:
        self._set_goal_type(self._goal_type)
        self._load_data()

    def _load_data(self) -> None:
        """Load draft and history and populate the welcome view."""
        self._draft = self.controller.load_draft()
        title = self.query_main("#draft-title", Label)
        preview = self.query_main("#draft-preview", Static)
        fresh = self.query_main("#start-fresh", Button)
        if self._draft.is_empty:
            title.update("No draft yet. Start writing.")
            preview.update("")
            fresh.display = False
        else:
            words = count_words(self._draft.content)
            edited = ""
            if self._draft.last_modified is not None:
                edited = f" · last edited {format_relative_time(self._draft.last_modified, now_local())}"
            title.update(f"Continue your draft: {words:,} words{edited}")
            text = self._draft.content.strip()
            preview.update(text[:200] + ("..." if len(text) > 200 else ""))
            fresh.display = True

        history = self.controller.load_history()
        summary = self.query_main("#history-summary", Static)
        if history:
            week = get_history_stats(history, days=7, now=now_local())
            summary.update(
                f"{summarize_history(history).label()}\n{recent_stats_label(week, days=7)}"
            )
        else:
            summary.update("")

    # ── Goal setup ─────────────────────────────────────────────

    def _set_goal_type(self, goal_type: str) -> None:
        self._goal_type = goal_type
        goal_input = self.query_main("#goal-input", Input)
        if goal_type == GOAL_TIME:
            goal_input.value = str(self.settings.default_time_goal)
            self.query_main("#goal-unit", Label).update("minutes")
        else:
            goal_input.value = str(self.settings.default_word_goal)
            self.query_main("#goal-unit", Label).update("words")
        self.query_main("#word-presets").display = goal_type == GOAL_WORDS
        self.query_main("#time-presets").display = goal_type == GOAL_TIME

    @on(RadioSet.Changed, "#goal-type")
    def _on_goal_type(self, event: RadioSet.Changed) -> None:
        self._set_goal_type(GOAL_TIME if event.pressed.id == "goal-time" else GOAL_WORDS)

    @on(Button.Pressed, ".preset")
    def _on_preset(self, event: Button.Pressed) -> None:
        value = (event.button.id or "").rsplit("-", 1)[-1]
        self.query_main("#goal-input", Input).value = value

    @on(Switch.Changed, "#strict-switch")
    def _on_strict_toggle(self, event: Switch.Changed) -> None:
        self.settings.strict_mode = event.value
        result = self.gateway.save_settings(self.settings)
        if not result.success:
            self._on_error(f"Could not save settings: {result.error}")

    @on(Button.Pressed, "#start-fresh")
    def _on_start_fresh(self) -> None:
        self.push_screen(ConfirmFreshScreen(), self._on_confirm_fresh)

    def _on_confirm_fresh(self, confirmed: bool | None) -> None:
        if confirmed and self.controller.start_fresh():
            self.notify("Draft archived. Blank page ready.", title="Start fresh")
        self._load_data()

    # ── Session transitions ────────────────────────────────────

    @on(Button.Pressed, "#start-session")
    def _on_start_session(self) -> None:
        raw = self.query_main("#goal-input", Input).value
        strict = self.query_main("#strict-switch", Switch).value
        try:
            self.controller.start_session(self._goal_type, raw, strict, self._draft.content)
        except ValidationError as e:
            self.notify(str(e), title="Invalid goal", severity="error")
            return
        editor = self.query_main("#editor", TextArea)
        editor.load_text(self._draft.content)
        self._hide_goal_banner()
        self._switch_to("writing")
        editor.focus()
        self._refresh_writing()

    @on(TextArea.Changed, "#editor")
    def _on_editor_change(self, event: TextArea.Changed) -> None:
        if self.controller.is_running:
            self.controller.update_text(event.text_area.text)

    def _on_goal_reached(self, stats: SessionStats) -> None:
        if stats.goal_type == GOAL_WORDS:
            message = f"Goal reached! {stats.words:,} words in {stats.duration}. You're free to go."
        else:
            message = f"Session complete! {stats.words:,} words written. You're free to go."
        self.query_main("#goal-banner-text", Static).update(message)
        self.query_main("#goal-banner").display = True
        self.query_main("#persistent-exit", Button).display = True
        self.bell()
        self.refresh_bindings()

    def _hide_goal_banner(self) -> None:
        self.query_main("#goal-banner").display = False
        self.query_main("#persistent-exit", Button).display = False

    @on(Button.Pressed, "#banner-close")
    def _on_banner_close(self) -> None:
        # The persistent Save & Exit button stays in the stats bar.
        self.query_main("#goal-banner").display = False

    @on(Button.Pressed, "#banner-keep")
    def action_keep_writing(self) -> None:
        if self.controller.state.phase != PHASE_GOAL_REACHED:
            return
        config = self.controller.keep_writing()
        unit = "words" if config.goal_type == GOAL_WORDS else "minutes"
        self.notify(f"New goal: {config.goal_value:,} {unit}", title="Keep writing")
        self._hide_goal_banner()
        self.query_main("#editor", TextArea).focus()
        self._refresh_writing()
        self.refresh_bindings()

    @on(Button.Pressed, "#banner-save-exit, #persistent-exit")
    def action_save_exit(self) -> None:
        if self.check_action("save_exit", ()) is not True:
            return
        self.controller.update_text(self.query_main("#editor", TextArea).text)
        self.controller.save_and_exit()

    def _on_session_ended(self, phase: str, entry: SessionHistoryEntry | None) -> None:
        self._hide_goal_banner()
        self._switch_to("welcome")
        self._load_data()
        if phase == PHASE_EMERGENCY_EXITED:
            self.notify("Emergency exit. Your draft was saved.", title="Session abandoned", severity="warning")
        elif entry is not None:
            status = "completed" if entry.completed else "ended early"
            self.notify(
                f"{entry.words_written:,} words in {entry.duration} ({status}).",
                title="Session saved",
            )
        self.refresh_bindings()

    # ── Emergency exit ─────────────────────────────────────────

    def action_emergency(self) -> None:
        if isinstance(self.screen, ModalScreen):
            self.screen.dismiss(None)
            return
        if self.controller.is_running:
            self._show_emergency()

    def _show_emergency(self) -> None:
        if isinstance(self.screen, EmergencyScreen):
            return
        self.push_screen(EmergencyScreen(), self._on_emergency_result)

    def _on_emergency_result(self, phrase: str | None) -> None:
        if phrase is None:
            if self.current_view == "writing":
                self.query_main("#editor", TextArea).focus()
            return
        self.controller.update_text(self.query_main("#editor", TextArea).text)
        self.controller.emergency_exit(phrase)

    async def action_quit(self) -> None:
        if not self.controller.request_close():
            return
        if self.controller.is_running:
            self.controller.update_text(self.query_main("#editor", TextArea).text)
        self.controller.shutdown()
        self.exit()

    # ── Live display ───────────────────────────────────────────

    def _refresh_writing(self) -> None:
        if self.current_view != "writing":
            return
        progress = self.controller.progress()
        self.query_main("#progress", ProgressBar).update(progress=progress.percent)
        self.query_main("#progress-text", Label).update(progress.label)

        state = self.controller.state
        text = self.controller.text
        self.query_main("#stat-words", Static).update(f"{state.current_word_count:,} words")
        self.query_main("#stat-chars", Static).update(f"{len(text):,} chars")
        self.query_main("#stat-time", Static).update(format_duration(state.elapsed_seconds))

    def _on_save_status(self, status: str, error: str | None) -> None:
        indicator = self.query_main("#save-indicator", Static)
        was_error = indicator.has_class("-error")
        if status == SAVE_SAVING:
            indicator.update("Saving...")
        elif status == SAVE_SAVED:
            indicator.update(f"Saved at {now_local().strftime('%H:%M')}")
            indicator.remove_class("-error")
        elif status == SAVE_ERROR:
            indicator.update("Save failed")
            indicator.add_class("-error")
            if not was_error:
                self.notify(error or "Failed to save your work", title="Warning", severity="error", timeout=10)
        else:
            indicator.update("")

    def _on_error(self, message: str) -> None:
        self.notify(message, title="Error", severity="error")

    def _switch_to(self, view: str) -> None:
        self.query_main("#welcome-view").display = view == "welcome"
        self.query_main("#writing-view").display = view == "writing"
        self.current_view = view
        self.refresh_bindings()

    # ── Hooks ──────────────────────────────────────────────────

    def _run_hook(self, hook_point: str, context: dict[str, Any]) -> None:
        self._run_hook_worker(hook_point, context)

    @work(thread=True, group="hooks")
    def _run_hook_worker(self, hook_point: str, context: dict[str, Any]) -> None:
        run_hooks(hook_point, context, self.root)


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = writer_root()
    root.mkdir(parents=True, exist_ok=True)
    setup_logger(log_path(root))

    app = FocusWriterApp(root)
    app.run()


if __name__ == "__main__":
    main()
