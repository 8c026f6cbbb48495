"""Goal validation, word counting and progress math for FocusWriter."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from core.errors import ValidationError
from core.models import (
    GOAL_TIME,
    GOAL_WORDS,
    ProgressView,
    SessionConfig,
    SessionState,
)


MIN_WORDS = 10
MAX_WORDS = 50000
MIN_MINUTES = 1
MAX_MINUTES = 480  # 8 hours

WORD_PRESETS = (250, 500, 1000, 2000)
TIME_PRESETS = (15, 25, 45, 60)

KEEP_WRITING_MINUTES = 10
KEEP_WRITING_WORD_FACTOR = 1.2

EMERGENCY_PHRASE = "I GIVE UP"


# ── Validation ────────────────────────────────────────────────


def _parse_int(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def validate_goal(goal_type: str, raw: Any) -> int:
    """Validate a goal value and return it as an int.

    Missing or non-numeric input fails the lower-bound check, so the
    message always names the bound that was violated.
    """
    value = _parse_int(raw)
    if goal_type == GOAL_WORDS:
        if value is None or value < MIN_WORDS:
            raise ValidationError(f"Word goal must be at least {MIN_WORDS} words")
        if value > MAX_WORDS:
            raise ValidationError(f"Word goal cannot exceed {MAX_WORDS:,} words")
        return value
    if goal_type == GOAL_TIME:
        if value is None or value < MIN_MINUTES:
            raise ValidationError(f"Time goal must be at least {MIN_MINUTES} minute")
        if value > MAX_MINUTES:
            raise ValidationError(
                f"Time goal cannot exceed {MAX_MINUTES} minutes ({MAX_MINUTES // 60} hours)"
            )
        return value
    raise ValidationError(f"Unknown goal type: {goal_type!r}")


def presets_for(goal_type: str) -> tuple[int, ...]:
    return TIME_PRESETS if goal_type == GOAL_TIME else WORD_PRESETS


# ── Counting & progress ───────────────────────────────────────


def count_words(text: str) -> int:
    """Number of whitespace-separated tokens; blank text counts as 0."""
    if not text:
        return 0
    return len(text.split())


def words_written(current: int, start: int) -> int:
    return max(0, current - start)


def progress_fraction(config: SessionConfig, state: SessionState) -> float:
    """Fraction of the goal achieved, clamped to [0, 1]."""
    if config.goal_type == GOAL_WORDS:
        written = words_written(state.current_word_count, state.start_word_count)
        return min(1.0, written / config.goal_value)
    target = config.goal_value * 60
    return min(1.0, state.elapsed_seconds / target)


def is_goal_met(config: SessionConfig, state: SessionState) -> bool:
    return progress_fraction(config, state) >= 1.0


def extend_goal(config: SessionConfig) -> SessionConfig:
    """New config for "keep writing": +10 minutes, or 20% more words rounded up."""
    if config.goal_type == GOAL_TIME:
        new_value = config.goal_value + KEEP_WRITING_MINUTES
    else:
        new_value = math.ceil(config.goal_value * KEEP_WRITING_WORD_FACTOR)
    return SessionConfig(
        goal_type=config.goal_type,
        goal_value=new_value,
        strict_mode=config.strict_mode,
    )


def remaining_label(config: SessionConfig, state: SessionState) -> str:
    if config.goal_type == GOAL_WORDS:
        written = words_written(state.current_word_count, state.start_word_count)
        return f"{written:,} / {config.goal_value:,} words"
    remaining = max(0, config.goal_value * 60 - state.elapsed_seconds)
    return f"{format_duration(remaining)} remaining"


def progress_view(config: SessionConfig, state: SessionState) -> ProgressView:
    if state.goal_triggered:
        return ProgressView(fraction=1.0, label="Goal reached!")
    return ProgressView(
        fraction=progress_fraction(config, state),
        label=remaining_label(config, state),
    )


# ── Emergency phrase ──────────────────────────────────────────


def is_emergency_phrase(text: str | None) -> bool:
    return (text or "").strip().upper() == EMERGENCY_PHRASE


# ── Formatting ────────────────────────────────────────────────


def format_duration(seconds: int) -> str:
    """MM:SS, or H:MM:SS from one hour up."""
    seconds = max(0, int(seconds))
    hrs, rest = divmod(seconds, 3600)
    mins, secs = divmod(rest, 60)
    if hrs > 0:
        return f"{hrs}:{mins:02d}:{secs:02d}"
    return f"{mins:02d}:{secs:02d}"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n != 1 else ''} ago"


def format_relative_time(then: datetime, now: datetime | None = None) -> str:
    if now is None:
        now = datetime.now(then.tzinfo)
    diff = (now - then).total_seconds()
    minutes = int(diff // 60)
    hours = int(diff // 3600)
    days = int(diff // 86400)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 7:
        return _plural(days, "day")
    return then.date().isoformat()
