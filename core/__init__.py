"""FocusWriter core library — session engine and data layer.

Public API re-exports for convenient imports:
    from core import SessionController, PersistenceGateway, count_words, ...
"""

# Workspace & paths
from core.workspace import (
    writer_root,
    now_local,
    current_draft_path,
    drafts_dir,
    sessions_path,
    settings_path,
    hooks_config_path,
    log_path,
)

# Errors
from core.errors import (
    FocusWriterError,
    ValidationError,
    PersistenceError,
    HostCapabilityError,
)

# Goals & progress
from core.goals import (
    count_words,
    validate_goal,
    presets_for,
    progress_fraction,
    extend_goal,
    is_emergency_phrase,
    format_duration,
    format_relative_time,
)

# Timer
from core.timer import compute_elapsed, advance_elapsed

# Persistence
from core.persistence import PersistenceGateway

# Lockdown
from core.lockdown import (
    LockdownEnforcer,
    NullEnforcer,
    HookEnforcer,
    CompositeEnforcer,
)

# History
from core.history import (
    HistorySummary,
    summarize_history,
    get_history_stats,
    recent_stats_label,
)

# Session controller
from core.session import SessionController

# Logging
from core.logging_setup import setup_logger

# Models
from core.models import (
    GOAL_WORDS,
    GOAL_TIME,
    PHASE_IDLE,
    PHASE_ACTIVE,
    PHASE_GOAL_REACHED,
    PHASE_EMERGENCY_EXITED,
    SessionConfig,
    SessionState,
    SessionStats,
    SessionHistoryEntry,
    DraftRecord,
    SaveResult,
    Settings,
    ProgressView,
)
