"""Comparison policies deciding between skip and upload.

SIZE skips when the remote size equals the task size. SIZE_ETAG also
requires the local MD5 to equal the remote ETag; the checksum is only
computed when the remote actually reports an ETag and sizes match.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from davsync.client.sync.types import SyncAction, SyncDecision, SyncTask
from davsync.core.crypto import compute_file_md5
from davsync.core.types import ComparisonPolicy

if TYPE_CHECKING:
    from davsync.client.api import RemoteMetadata


def decide(
    task: SyncTask,
    metadata: RemoteMetadata | None,
    policy: ComparisonPolicy,
    checksum: Callable[[], str] | None = None,
) -> SyncDecision:
    """Decide whether a task must be uploaded.

    Args:
        task: The task being processed.
        metadata: Remote metadata, or None if the remote file is absent.
        policy: Comparison policy.
        checksum: Returns the local checksum; defaults to the MD5 of
            task.local_path. Called at most once, and only when needed.

    Returns:
        SyncDecision with action UPLOAD or SKIP.
    """
    if metadata is None:
        return SyncDecision(SyncAction.UPLOAD, "Remote file absent")

    if metadata.size is None or metadata.size != task.size:
        return SyncDecision(
            SyncAction.UPLOAD,
            f"Size differs (local {task.size}, remote {metadata.size})",
        )

    if policy == ComparisonPolicy.SIZE:
        return SyncDecision(SyncAction.SKIP, "Same size")

    if not metadata.etag:
        return SyncDecision(SyncAction.UPLOAD, "Remote ETag unavailable")

    local_sum = checksum() if checksum is not None else compute_file_md5(task.local_path)
    if local_sum.lower() == metadata.etag.lower():
        return SyncDecision(SyncAction.SKIP, "Same size and checksum")
    return SyncDecision(SyncAction.UPLOAD, "Checksum differs")
