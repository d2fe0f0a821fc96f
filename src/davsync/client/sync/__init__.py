"""Sync operations for uploading a local tree to a WebDAV remote.

Architecture:
    plan_tasks → SyncScheduler (worker threads) → WebDAVClient

Components:
- **plan_tasks / iter_local_files**: Enumerate local files into SyncTask objects
- **decide**: Comparison policy (size, or size + ETag checksum)
- **SyncScheduler / run_sync**: Bounded worker pool draining a shared queue
- **smart_sync**: Plan and run in one call
- **RetryPolicy**: Retry rule applied by the client to network operations
"""

from davsync.client.sync.compare import decide
from davsync.client.sync.planner import iter_local_files, join_remote, plan_tasks
from davsync.client.sync.retry import (
    RETRYABLE_STATUS_CODES,
    TRANSIENT_EXCEPTIONS,
    RetryPolicy,
    is_retryable,
    is_retryable_status,
)
from davsync.client.sync.scheduler import SyncScheduler, run_sync, smart_sync
from davsync.client.sync.types import (
    LocalFileInfo,
    PlanningError,
    ResultCallback,
    SyncAction,
    SyncDecision,
    SyncError,
    SyncReport,
    SyncTask,
    TaskOutcome,
)

__all__ = [
    # Planner
    "iter_local_files",
    "join_remote",
    "plan_tasks",
    # Comparison
    "decide",
    # Retry
    "RETRYABLE_STATUS_CODES",
    "TRANSIENT_EXCEPTIONS",
    "RetryPolicy",
    "is_retryable",
    "is_retryable_status",
    # Scheduler
    "SyncScheduler",
    "run_sync",
    "smart_sync",
    # Types
    "LocalFileInfo",
    "PlanningError",
    "ResultCallback",
    "SyncAction",
    "SyncDecision",
    "SyncError",
    "SyncReport",
    "SyncTask",
    "TaskOutcome",
]
