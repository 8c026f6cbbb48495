"""Typed dataclasses for the FocusWriter data model.

Persisted models use from_dict/to_dict for JSON/YAML serialization.
camelCase on disk is mapped to snake_case in Python.
Unknown keys are ignored; missing or invalid values use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


GOAL_WORDS = "words"
GOAL_TIME = "time"
GOAL_TYPES = (GOAL_WORDS, GOAL_TIME)

PHASE_IDLE = "idle"
PHASE_ACTIVE = "active"
PHASE_GOAL_REACHED = "goal_reached"
PHASE_EMERGENCY_EXITED = "emergency_exited"

SAVE_IDLE = "idle"
SAVE_SAVING = "saving"
SAVE_SAVED = "saved"
SAVE_ERROR = "error"


# ── Session ───────────────────────────────────────────────────


@dataclass(frozen=True)
class SessionConfig:
    """Goal and mode of one session. Replaced, never mutated."""

    goal_type: str = GOAL_WORDS
    goal_value: int = 500
    strict_mode: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "goalType": self.goal_type,
            "goalValue": self.goal_value,
            "strictMode": self.strict_mode,
        }


@dataclass
class SessionState:
    """Mutable state of the single session, owned by the controller."""

    phase: str = PHASE_IDLE
    start_time: float | None = None  # epoch seconds
    start_word_count: int = 0
    current_word_count: int = 0
    elapsed_seconds: int = 0
    goal_triggered: bool = False

    def reset(self) -> None:
        self.phase = PHASE_IDLE
        self.start_time = None
        self.start_word_count = 0
        self.current_word_count = 0
        self.elapsed_seconds = 0
        self.goal_triggered = False


@dataclass
class SessionStats:
    words: int = 0
    duration: str = "N/A"
    goal_type: str | None = None
    goal_value: int | None = None
    completed: bool = False


@dataclass
class ProgressView:
    fraction: float = 0.0
    label: str = ""

    @property
    def percent(self) -> float:
        return round(self.fraction * 100, 1)


# ── Persistence ───────────────────────────────────────────────


@dataclass
class DraftRecord:
    content: str = ""
    last_modified: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()


@dataclass
class SaveResult:
    success: bool = True
    error: str | None = None
    path: Path | None = None


def _int_or(value: Any, default: int | None) -> int | None:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


@dataclass(frozen=True)
class SessionHistoryEntry:
    """One finished session. Appended once, never mutated."""

    timestamp: str = ""
    words_written: int = 0
    duration: str | None = None
    goal_type: str | None = None
    goal_value: int | None = None
    completed: bool = False
    draft_path: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SessionHistoryEntry:
        if not d or not isinstance(d, dict):
            return cls()
        goal_value = d.get("goalValue", d.get("goal_value"))
        return cls(
            timestamp=str(d.get("date", d.get("timestamp", ""))),
            words_written=_int_or(d.get("words", d.get("words_written")), 0),
            duration=d.get("duration"),
            goal_type=d.get("goalType", d.get("goal_type")),
            goal_value=_int_or(goal_value, None),
            completed=bool(d.get("completed", False)),
            draft_path=d.get("draftPath", d.get("draft_path")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.timestamp,
            "words": self.words_written,
            "duration": self.duration,
            "goalType": self.goal_type,
            "goalValue": self.goal_value,
            "completed": self.completed,
            "draftPath": self.draft_path,
        }


# ── Settings ──────────────────────────────────────────────────


VALID_THEMES = {"dark", "light"}
VALID_FONT_SIZES = {"small", "medium", "large"}
VALID_FONT_FAMILIES = {"serif", "sans", "mono"}


def _positive_int(value: Any, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


@dataclass
class Settings:
    strict_mode: bool = True
    theme: str = "dark"
    font_size: str = "medium"
    font_family: str = "serif"
    default_goal_type: str = GOAL_WORDS
    default_word_goal: int = 500
    default_time_goal: int = 25
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        known = {
            "strictMode", "theme", "fontSize", "fontFamily",
            "defaultGoalType", "defaultWordGoal", "defaultTimeGoal",
        }
        strict = d.get("strictMode", True)
        theme = str(d.get("theme", "dark")).lower()
        font_size = str(d.get("fontSize", "medium")).lower()
        font_family = str(d.get("fontFamily", "serif")).lower()
        goal_type = str(d.get("defaultGoalType", GOAL_WORDS)).lower()
        return cls(
            # Only an explicit false turns strict mode off.
            strict_mode=strict is not False,
            theme=theme if theme in VALID_THEMES else "dark",
            font_size=font_size if font_size in VALID_FONT_SIZES else "medium",
            font_family=font_family if font_family in VALID_FONT_FAMILIES else "serif",
            default_goal_type=goal_type if goal_type in GOAL_TYPES else GOAL_WORDS,
            default_word_goal=_positive_int(d.get("defaultWordGoal"), 500),
            default_time_goal=_positive_int(d.get("defaultTimeGoal"), 25),
            extra={k: v for k, v in d.items() if k not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "strictMode": self.strict_mode,
            "theme": self.theme,
            "fontSize": self.font_size,
            "fontFamily": self.font_family,
            "defaultGoalType": self.default_goal_type,
            "defaultWordGoal": self.default_word_goal,
            "defaultTimeGoal": self.default_time_goal,
        }
        d.update(self.extra)
        return d
