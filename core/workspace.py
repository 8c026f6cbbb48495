"""Workspace root and path helpers for FocusWriter."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path


def writer_root() -> Path:
    """Get the writer workspace (holds current.txt, drafts/, sessions.json)."""
    return Path(
        os.environ.get(
            "FOCUSWRITER_ROOT",
            str(Path.home() / "Documents" / "Focus Writer Pro"),
        )
    ).expanduser().resolve()


def now_local() -> datetime:
    """Get current timezone-aware local datetime."""
    return datetime.now().astimezone()


# ── Path helpers ──────────────────────────────────────────────

def current_draft_path(root: Path | None = None) -> Path:
    if root is None:
        root = writer_root()
    return root / "current.txt"


def drafts_dir(root: Path | None = None) -> Path:
    if root is None:
        root = writer_root()
    return root / "drafts"


def sessions_path(root: Path | None = None) -> Path:
    if root is None:
        root = writer_root()
    return root / "sessions.json"


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = writer_root()
    return root / "settings.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = writer_root()
    return root / "hooks.yaml"


def log_path(root: Path | None = None) -> Path:
    if root is None:
        root = writer_root()
    return root / "logs" / "focuswriter.log"
