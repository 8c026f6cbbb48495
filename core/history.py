"""Session history statistics for FocusWriter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from core.models import SessionHistoryEntry


@dataclass
class HistorySummary:
    total_words: int = 0
    total_sessions: int = 0
    completed_sessions: int = 0

    def label(self) -> str:
        return (
            f"{self.total_words:,} total words · "
            f"{self.completed_sessions}/{self.total_sessions} sessions completed"
        )


def summarize_history(entries: list[SessionHistoryEntry]) -> HistorySummary:
    return HistorySummary(
        total_words=sum(e.words_written for e in entries),
        total_sessions=len(entries),
        completed_sessions=sum(1 for e in entries if e.completed),
    )


def _parse_timestamp(value: str) -> datetime | None:
    try:
        # sessions.json written by older builds uses a trailing "Z".
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    return ts if ts.tzinfo else ts.astimezone()


def get_history_stats(
    entries: list[SessionHistoryEntry],
    days: int = 7,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Get writing statistics for the last N days."""
    if now is None:
        now = datetime.now().astimezone()
    cutoff = now - timedelta(days=days)

    recent = []
    for e in entries:
        ts = _parse_timestamp(e.timestamp)
        if ts is not None and ts >= cutoff:
            recent.append(e)

    if not recent:
        return {
            "total_sessions": 0,
            "total_words": 0,
            "avg_words_per_session": 0,
            "completion_rate": 0,
        }

    total_words = sum(e.words_written for e in recent)
    completed = sum(1 for e in recent if e.completed)

    return {
        "total_sessions": len(recent),
        "total_words": total_words,
        "avg_words_per_session": round(total_words / len(recent), 1),
        "completion_rate": round(completed / len(recent), 3),
    }


def recent_stats_label(stats: dict[str, Any], days: int = 7) -> str:
    """One-line rendering of get_history_stats() for the welcome view."""
    if not stats["total_sessions"]:
        return f"No sessions in the last {days} days"
    sessions = stats["total_sessions"]
    return (
        f"Last {days} days: {stats['total_words']:,} words in "
        f"{sessions} session{'s' if sessions != 1 else ''}, "
        f"{stats['completion_rate']:.0%} completed"
    )
