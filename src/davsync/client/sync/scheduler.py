"""Concurrent sync scheduler.

This module provides:
- SyncScheduler: Pool of worker threads draining a shared task queue
- run_sync: Run a list of planned tasks and return the report
- smart_sync: Plan a local tree and run it against a remote directory

Each worker takes one task at a time and handles it end to end:
ensure the parent directory, probe remote metadata, apply the comparison
policy, then skip or upload. A failing task is counted and logged; it
never stops the other workers.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from davsync.client.sync.compare import decide
from davsync.client.sync.planner import plan_tasks
from davsync.client.sync.types import (
    ResultCallback,
    SyncAction,
    SyncReport,
    SyncTask,
    TaskOutcome,
)
from davsync.core.config import DEFAULT_CONCURRENCY
from davsync.core.types import ComparisonPolicy

if TYPE_CHECKING:
    from davsync.client.api import WebDAVClient

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Runs sync tasks with a bounded number of worker threads.

    Usage:
        scheduler = SyncScheduler(client, concurrency=4)
        report = scheduler.run(plan_tasks(Path("photos"), "/backup/photos"))
        print(report.uploaded, report.skipped, report.failed)
    """

    def __init__(
        self,
        client: WebDAVClient,
        concurrency: int = DEFAULT_CONCURRENCY,
        policy: ComparisonPolicy | str = ComparisonPolicy.SIZE_ETAG,
        on_result: ResultCallback | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            client: Transport shared by all workers.
            concurrency: Number of workers; values below 1 mean 1.
            policy: Comparison policy for skip decisions.
            on_result: Optional callback invoked after each task.
        """
        self._client = client
        self._concurrency = max(1, concurrency)
        self._policy = ComparisonPolicy.parse(policy)
        self._on_result = on_result

    @property
    def concurrency(self) -> int:
        """Get the number of workers used per run."""
        return self._concurrency

    def run(self, tasks: Iterable[SyncTask]) -> SyncReport:
        """Process all tasks and wait for the workers to finish.

        Args:
            tasks: Planned tasks.

        Returns:
            SyncReport with one processed count per task.
        """
        task_queue: queue.Queue[SyncTask] = queue.Queue()
        for task in tasks:
            task_queue.put(task)

        report = SyncReport()
        lock = threading.Lock()
        total = task_queue.qsize()
        logger.info(f"Syncing {total} file(s) with {self._concurrency} worker(s)")

        start = time.monotonic()
        workers = [
            threading.Thread(
                target=self._worker_loop,
                args=(task_queue, report, lock),
                name=f"SyncWorker-{i}",
                daemon=True,
            )
            for i in range(self._concurrency)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        report.elapsed_ms = int((time.monotonic() - start) * 1000)

        logger.info(
            f"Sync finished: {report.processed} processed, {report.uploaded} uploaded, "
            f"{report.skipped} skipped, {report.failed} failed in {report.elapsed_ms} ms"
        )
        return report

    def _worker_loop(
        self,
        task_queue: queue.Queue[SyncTask],
        report: SyncReport,
        lock: threading.Lock,
    ) -> None:
        """Main loop for worker threads; returns when the queue is empty."""
        while True:
            try:
                task = task_queue.get_nowait()
            except queue.Empty:
                return

            outcome = self._process_task(task)

            with lock:
                report.processed += 1
                if outcome == TaskOutcome.UPLOADED:
                    report.uploaded += 1
                elif outcome == TaskOutcome.SKIPPED:
                    report.skipped += 1
                else:
                    report.failed += 1

            if self._on_result:
                try:
                    self._on_result(task, outcome)
                except Exception:
                    logger.exception(f"Result callback failed for {task.remote_path}")

    def _process_task(self, task: SyncTask) -> TaskOutcome:
        """Synchronize a single file.

        Args:
            task: The task to process.

        Returns:
            The terminal outcome of the task.
        """
        name = task.local_path.name
        try:
            parent = task.remote_parent
            if parent:
                self._client.create_directory(parent)

            metadata = self._client.probe_metadata(task.remote_path)
            decision = decide(task, metadata, self._policy)

            if decision.action == SyncAction.SKIP:
                logger.info(f"[SKIP] {name} ({decision.reason})")
                return TaskOutcome.SKIPPED

            logger.debug(f"Uploading {task.remote_path}: {decision.reason}")
            self._client.upload(task.local_path, task.remote_path)
            logger.info(f"[UP]   {name}")
            return TaskOutcome.UPLOADED

        except Exception as e:
            logger.exception(f"[ERR]  {task.local_path}: {e}")
            return TaskOutcome.FAILED


def run_sync(
    client: WebDAVClient,
    tasks: Iterable[SyncTask],
    concurrency: int = DEFAULT_CONCURRENCY,
    policy: ComparisonPolicy | str = ComparisonPolicy.SIZE_ETAG,
    on_result: ResultCallback | None = None,
) -> SyncReport:
    """Run planned tasks through a scheduler.

    Args:
        client: Transport shared by all workers.
        tasks: Planned tasks.
        concurrency: Number of workers (minimum 1).
        policy: Comparison policy.
        on_result: Optional per-task callback.

    Returns:
        The aggregated SyncReport.
    """
    scheduler = SyncScheduler(client, concurrency=concurrency, policy=policy, on_result=on_result)
    return scheduler.run(tasks)


def smart_sync(
    client: WebDAVClient,
    local_root: Path,
    remote_root: str,
    concurrency: int = DEFAULT_CONCURRENCY,
    policy: ComparisonPolicy | str = ComparisonPolicy.SIZE_ETAG,
    on_result: ResultCallback | None = None,
) -> SyncReport:
    """Upload a local tree to a remote directory, skipping unchanged files.

    Args:
        client: Transport shared by all workers.
        local_root: Local directory to upload.
        remote_root: Remote directory receiving the tree.
        concurrency: Number of workers (minimum 1).
        policy: Comparison policy.
        on_result: Optional per-task callback.

    Returns:
        The aggregated SyncReport.

    Raises:
        PlanningError: If local_root is not a readable directory.
    """
    tasks = plan_tasks(local_root, remote_root)
    return run_sync(client, tasks, concurrency=concurrency, policy=policy, on_result=on_result)
