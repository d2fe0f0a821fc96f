"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, PlanningError: Exception classes
- LocalFileInfo: Local file found by the planner
- SyncTask: One file to synchronize
- SyncAction, SyncDecision: Outcome of the comparison policy
- TaskOutcome: Terminal state of a task
- SyncReport: Aggregated counters of one sync run
- Type aliases for callbacks
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path


class SyncError(Exception):
    """Base exception for sync errors."""


class PlanningError(SyncError):
    """Local tree could not be enumerated."""


@dataclass(frozen=True)
class LocalFileInfo:
    """A regular file found under the local root.

    Attributes:
        path: Absolute or root-relative path on disk.
        relative_path: Path relative to the local root, forward slashes.
        size: Size in bytes.
    """

    path: Path
    relative_path: str
    size: int


@dataclass(frozen=True)
class SyncTask:
    """A file to synchronize.

    Attributes:
        local_path: Path of the local file.
        remote_path: Forward-slash remote path (escaped only when used).
        size: Local size in bytes at planning time.
    """

    local_path: Path
    remote_path: str
    size: int

    @property
    def remote_parent(self) -> str:
        """Remote directory containing the file ("" if none)."""
        index = self.remote_path.rfind("/")
        return self.remote_path[:index] if index >= 0 else ""


class SyncAction(str, Enum):
    """Actions the comparison policy can choose."""

    UPLOAD = "upload"
    SKIP = "skip"


@dataclass(frozen=True)
class SyncDecision:
    """Decision for one task with a human-readable reason."""

    action: SyncAction
    reason: str


class TaskOutcome(str, Enum):
    """Terminal state of a task (exactly one per task)."""

    UPLOADED = "uploaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncReport:
    """Counters of one sync run.

    Attributes:
        processed: Tasks finished, whatever the outcome.
        uploaded: Tasks uploaded successfully.
        skipped: Tasks already synchronized.
        failed: Tasks that raised an error.
        elapsed_ms: Wall-clock duration of the run in milliseconds.
    """

    processed: int = 0
    uploaded: int = 0
    skipped: int = 0
    failed: int = 0
    elapsed_ms: int = 0

    @property
    def success(self) -> bool:
        """True if no task failed."""
        return self.failed == 0

    def to_dict(self) -> dict[str, int]:
        """Convert report to a dictionary."""
        return asdict(self)


# Type aliases
ResultCallback = Callable[[SyncTask, TaskOutcome], None]
