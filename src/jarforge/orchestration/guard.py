"""Export Guard - process-wide single-flight lock for export runs.

WHY
───
Two export runs racing on the same project state or the same output file
would produce a corrupt or misleading archive. The guard makes "an export is
running" explicit: a run acquires it before the pre-flight build and releases
it on every exit path. A second invocation that finds the guard held does
nothing at all; it is not queued and it is not an error.

ARCHITECTURE
────────────
::

    ExportGuard()                 ─ one per process (get_export_guard())
      ├── .acquire(owner)         ─ non-blocking try-lock → bool
      ├── .release(owner)         ─ unlock (only the holder may release)
      ├── .held / .holder         ─ inspect without acquiring
      └── .hold(owner)            ─ scoped acquisition, releases in finally

Example::

    guard = get_export_guard()
    with guard.hold(run_id) as acquired:
        if not acquired:
            return            # another export is in flight
        await run_pipeline()
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from jarforge.core.logging import get_logger

logger = get_logger(__name__)


class ExportGuard:
    """Single-flight guard for export runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._holder: str | None = None
        self._acquired_at: datetime | None = None

    @property
    def held(self) -> bool:
        return self._holder is not None

    @property
    def holder(self) -> str | None:
        return self._holder

    @property
    def acquired_at(self) -> datetime | None:
        return self._acquired_at

    def acquire(self, owner: str) -> bool:
        """Try to take the guard.

        Args:
            owner: Identifier of the run taking the guard

        Returns:
            True if acquired, False if another run holds it
        """
        with self._lock:
            if self._holder is not None:
                logger.debug("export_guard.busy", owner=owner, holder=self._holder)
                return False
            self._holder = owner
            self._acquired_at = datetime.now(UTC)
            return True

    def release(self, owner: str) -> bool:
        """Release the guard if ``owner`` holds it.

        Returns:
            True if released, False if ``owner`` was not the holder
        """
        with self._lock:
            if self._holder != owner:
                return False
            self._holder = None
            self._acquired_at = None
            return True

    @contextmanager
    def hold(self, owner: str) -> Iterator[bool]:
        """Scoped acquisition; yields whether the guard was acquired."""
        acquired = self.acquire(owner)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(owner)


_export_guard = ExportGuard()


def get_export_guard() -> ExportGuard:
    """Return the process-wide export guard."""
    return _export_guard


__all__ = ["ExportGuard", "get_export_guard"]
