"""Persistence gateway for FocusWriter.

Owns every file the session core reads or writes: the live draft, the
archived drafts, the session history and the settings. Paths come from
core.workspace so tests can point the gateway at a temporary root.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core.errors import PersistenceError
from core.fileio import (
    modified_at,
    read_json_list,
    read_text,
    read_yaml,
    write_json_atomic,
    write_text_atomic,
    write_yaml_atomic,
)
from core.models import DraftRecord, SaveResult, SessionHistoryEntry, SessionStats, Settings
from core.workspace import (
    current_draft_path,
    drafts_dir,
    now_local,
    sessions_path,
    settings_path,
    writer_root,
)

logger = logging.getLogger(__name__)

ARCHIVE_TITLE = "# Focus Writer Draft"


def build_archive_header(stats: SessionStats, when: str) -> str:
    return (
        f"{ARCHIVE_TITLE}\n"
        f"# Date: {when}\n"
        f"# Words: {stats.words}\n"
        f"# Session Duration: {stats.duration or 'N/A'}\n"
        "# ---\n"
        "\n"
    )


class PersistenceGateway:
    """File-backed storage for drafts, history and settings."""

    def __init__(self, root: Path | None = None):
        self.root = root if root is not None else writer_root()

    # ── Draft ──────────────────────────────────────────────────

    def load_draft(self) -> DraftRecord:
        path = current_draft_path(self.root)
        try:
            return DraftRecord(content=read_text(path), last_modified=modified_at(path))
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error loading draft: %s", e)
            raise PersistenceError(f"Could not load draft: {e}") from e

    def save_content(self, text: str) -> SaveResult:
        path = current_draft_path(self.root)
        try:
            write_text_atomic(path, text)
        except OSError as e:
            logger.error("Error saving content: %s", e)
            return SaveResult(success=False, error=str(e) or "Failed to save content")
        return SaveResult(success=True, path=path)

    def clear_draft(self) -> SaveResult:
        path = current_draft_path(self.root)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Error clearing draft: %s", e)
            return SaveResult(success=False, error=str(e))
        return SaveResult(success=True)

    def archive_draft(self, content: str, stats: SessionStats) -> Path:
        """Write a timestamped copy of content with a stats header."""
        now = now_local()
        directory = drafts_dir(self.root)
        stem = now.strftime("%Y-%m-%dT%H-%M-%S")
        path = directory / f"{stem}.txt"
        n = 1
        while path.exists():
            path = directory / f"{stem}-{n}.txt"
            n += 1
        header = build_archive_header(stats, now.strftime("%Y-%m-%d %H:%M:%S"))
        try:
            write_text_atomic(path, header + content)
        except OSError as e:
            logger.error("Error archiving draft: %s", e)
            raise PersistenceError(f"Could not archive draft: {e}") from e
        logger.info("Archived draft to %s", path)
        return path

    # ── Session history ────────────────────────────────────────

    def load_session_history(self) -> list[SessionHistoryEntry]:
        try:
            data = read_json_list(sessions_path(self.root))
            return [SessionHistoryEntry.from_dict(d) for d in data if isinstance(d, dict)]
        except (OSError, ValueError) as e:
            logger.error("Error loading sessions: %s", e)
            raise PersistenceError(f"Could not load session history: {e}") from e

    def append_session_history(self, entry: SessionHistoryEntry) -> None:
        path = sessions_path(self.root)
        try:
            data = read_json_list(path)
            data.append(entry.to_dict())
            write_json_atomic(path, data)
        except (OSError, ValueError) as e:
            logger.error("Error logging session: %s", e)
            raise PersistenceError(f"Could not append session history: {e}") from e

    # ── Settings ───────────────────────────────────────────────

    def load_settings(self) -> Settings:
        path = settings_path(self.root)
        try:
            return Settings.from_dict(read_yaml(path))
        except Exception as e:
            logger.error("Error loading settings, using defaults: %s", e)
            return Settings()

    def save_settings(self, settings: Settings) -> SaveResult:
        path = settings_path(self.root)
        try:
            write_yaml_atomic(path, settings.to_dict())
        except OSError as e:
            logger.error("Error saving settings: %s", e)
            return SaveResult(success=False, error=str(e))
        return SaveResult(success=True, path=path)
