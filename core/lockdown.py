"""Lockdown enforcers.

An enforcer is an on/off switch over host-level escape routes (fullscreen,
window close, app switching). The session controller only ever calls
engage() and release(); both are idempotent and never raise, because a
degraded lockdown is preferable to a session stuck mid-transition.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core.errors import HostCapabilityError
from core.hooks import run_hooks

logger = logging.getLogger(__name__)


class LockdownEnforcer:
    """Base enforcer. Subclasses implement _engage() and _release()."""

    name = "lockdown"

    def __init__(self) -> None:
        self.engaged = False

    def engage(self) -> None:
        if self.engaged:
            return
        self.engaged = True
        try:
            self._engage()
            logger.info("%s engaged", self.name)
        except (HostCapabilityError, OSError) as e:
            logger.warning("%s engaged with degraded capability: %s", self.name, e)

    def release(self) -> None:
        if not self.engaged:
            return
        self.engaged = False
        try:
            self._release()
            logger.info("%s released", self.name)
        except (HostCapabilityError, OSError) as e:
            logger.warning("%s release incomplete: %s", self.name, e)

    def _engage(self) -> None:
        pass

    def _release(self) -> None:
        pass


class NullEnforcer(LockdownEnforcer):
    """Does nothing on the host; counts calls that changed state."""

    name = "null lockdown"

    def __init__(self) -> None:
        super().__init__()
        self.engage_count = 0
        self.release_count = 0

    def _engage(self) -> None:
        self.engage_count += 1

    def _release(self) -> None:
        self.release_count += 1


class HookEnforcer(LockdownEnforcer):
    """Runs the lockdown_engage / lockdown_release hooks from hooks.yaml."""

    name = "hook lockdown"

    def __init__(self, root: Path | None = None) -> None:
        super().__init__()
        self.root = root

    def _run(self, hook_point: str) -> None:
        results = run_hooks(hook_point, {}, self.root)
        failed = [r for r in results if r.get("exit_code") != 0]
        if failed:
            detail = "; ".join(
                f"{r['command']}: {r.get('error') or 'exit ' + str(r.get('exit_code'))}"
                for r in failed
            )
            raise HostCapabilityError(f"{len(failed)} {hook_point} hook(s) failed: {detail}")

    def _engage(self) -> None:
        self._run("lockdown_engage")

    def _release(self) -> None:
        self._run("lockdown_release")


class CompositeEnforcer(LockdownEnforcer):
    """Engages children in order and releases them in reverse."""

    name = "composite lockdown"

    def __init__(self, *enforcers: LockdownEnforcer) -> None:
        super().__init__()
        self.enforcers = list(enforcers)

    def _engage(self) -> None:
        for enforcer in self.enforcers:
            enforcer.engage()

    def _release(self) -> None:
        for enforcer in reversed(self.enforcers):
            enforcer.release()
