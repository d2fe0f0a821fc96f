"""Local tree enumeration for sync runs.

This module provides:
- iter_local_files: Lazy, iterative walk of regular files under a root
- plan_tasks: Flat list of SyncTask objects for a local/remote root pair
- join_remote: Normalized join of remote path segments

The walk keeps an explicit stack of pending directories.
"""

from __future__ import annotations

import logging
import os
import posixpath
from collections.abc import Iterator
from pathlib import Path

from davsync.client.sync.types import LocalFileInfo, PlanningError, SyncTask

logger = logging.getLogger(__name__)


def join_remote(*segments: str) -> str:
    """Join remote path segments and normalize the result.

    Backslashes become slashes; repeated slashes, "." and ".." segments are
    resolved. A trailing slash on the input is kept.
    """
    joined = posixpath.join(*(s.replace("\\", "/") for s in segments))
    if not joined:
        return ""

    normalized = posixpath.normpath(joined)
    if normalized == ".":
        normalized = ""
    elif normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    if normalized and joined.endswith("/") and not normalized.endswith("/"):
        normalized += "/"
    return normalized


def iter_local_files(local_root: Path) -> Iterator[LocalFileInfo]:
    """Yield every regular file under a directory.

    Order follows filesystem enumeration and is not stable across
    platforms. Symlinked files are included; symlinked directories are not
    descended into. Unreadable directories are logged and skipped.

    Args:
        local_root: Directory to walk.

    Yields:
        LocalFileInfo for each regular file.

    Raises:
        PlanningError: If local_root does not exist or is not a directory.
    """
    root = Path(local_root)
    if not root.is_dir():
        raise PlanningError(f"Local directory does not exist: {root}")

    pending: list[Path] = [root]
    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as entries:
                children = list(entries)
        except OSError as e:
            logger.warning(f"Cannot read directory {directory}: {e}")
            continue

        for entry in children:
            try:
                if entry.is_dir(follow_symlinks=False):
                    pending.append(Path(entry.path))
                elif entry.is_file():
                    path = Path(entry.path)
                    yield LocalFileInfo(
                        path=path,
                        relative_path=path.relative_to(root).as_posix(),
                        size=entry.stat().st_size,
                    )
            except OSError as e:
                logger.warning(f"Cannot stat {entry.path}: {e}")


def plan_tasks(local_root: Path, remote_root: str) -> list[SyncTask]:
    """Build the list of files to synchronize.

    Args:
        local_root: Local directory to upload.
        remote_root: Remote directory receiving the tree.

    Returns:
        One SyncTask per regular file, remote paths joined with "/".

    Raises:
        PlanningError: If local_root is not a readable directory.
    """
    tasks = [
        SyncTask(
            local_path=info.path,
            remote_path=join_remote(remote_root, info.relative_path),
            size=info.size,
        )
        for info in iter_local_files(local_root)
    ]
    logger.info(f"Found {len(tasks)} file(s) under {local_root}")
    return tasks
