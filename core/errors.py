"""Error taxonomy for FocusWriter.

None of these are fatal to the process:
- ValidationError: bad goal input; the session never starts.
- PersistenceError: a storage read/write failed; retried on the next cycle.
- HostCapabilityError: lockdown could only be partially applied; logged only.
"""

from __future__ import annotations


class FocusWriterError(Exception):
    """Base class for all FocusWriter errors."""


class ValidationError(FocusWriterError, ValueError):
    """Invalid goal configuration. The message is shown to the user."""


class PersistenceError(FocusWriterError, OSError):
    """A draft, history or settings file could not be read or written."""


class HostCapabilityError(FocusWriterError, RuntimeError):
    """A lockdown engage/release step failed on the host."""
