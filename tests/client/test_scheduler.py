"""Tests for the concurrent sync scheduler."""

from __future__ import annotations

import hashlib
import threading
import time
from pathlib import Path

import pytest

from davsync.client.api import RemoteMetadata, TransportError
from davsync.client.sync import (
    SyncReport,
    SyncScheduler,
    SyncTask,
    TaskOutcome,
    plan_tasks,
    run_sync,
    smart_sync,
)
from davsync.core.types import ComparisonPolicy


class FakeClient:
    """In-memory stand-in for WebDAVClient."""

    def __init__(self, upload_delay: float = 0.0) -> None:
        self.files: dict[str, bytes] = {}
        self.directories: list[str] = []
        self.uploads: list[str] = []
        self.fail_uploads: set[str] = set()
        self.fail_heads: set[str] = set()
        self.upload_delay = upload_delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def create_directory(self, remote_path: str) -> None:
        with self._lock:
            self.directories.append(remote_path)

    def probe_metadata(self, remote_path: str) -> RemoteMetadata | None:
        if remote_path in self.fail_heads:
            raise TransportError("HEAD failed: 503", status_code=503, retryable=True)
        with self._lock:
            data = self.files.get(remote_path)
        if data is None:
            return None
        return RemoteMetadata(size=len(data), etag=hashlib.md5(data).hexdigest(), last_modified=None)

    def upload(self, local_path: Path, remote_path: str) -> str:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.upload_delay:
                time.sleep(self.upload_delay)
            if remote_path in self.fail_uploads:
                raise TransportError("PUT failed: 507", status_code=507)
            data = Path(local_path).read_bytes()
            with self._lock:
                self.files[remote_path] = data
                self.uploads.append(remote_path)
            return remote_path
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def local_tree(tmp_path: Path) -> Path:
    """Create a.txt (10 bytes) and sub/b.txt (20 bytes)."""
    root = tmp_path / "local"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"a" * 10)
    (root / "sub" / "b.txt").write_bytes(b"b" * 20)
    return root


def counts(report: SyncReport) -> tuple[int, int, int, int]:
    return report.processed, report.uploaded, report.skipped, report.failed


class TestSmartSync:
    """Tests for smart_sync end to end with a fake client."""

    def test_first_run_uploads_everything(self, local_tree: Path) -> None:
        """A fresh remote should receive every file."""
        client = FakeClient()

        report = smart_sync(client, local_tree, "/backup", concurrency=2, policy=ComparisonPolicy.SIZE)  # type: ignore[arg-type]

        assert counts(report) == (2, 2, 0, 0)
        assert report.success
        assert client.files == {"/backup/a.txt": b"a" * 10, "/backup/sub/b.txt": b"b" * 20}

    def test_second_run_skips_everything(self, local_tree: Path) -> None:
        """An unchanged tree should be skipped entirely."""
        client = FakeClient()
        smart_sync(client, local_tree, "/backup", concurrency=2, policy=ComparisonPolicy.SIZE)  # type: ignore[arg-type]
        client.uploads.clear()

        report = smart_sync(client, local_tree, "/backup", concurrency=2, policy=ComparisonPolicy.SIZE)  # type: ignore[arg-type]

        assert counts(report) == (2, 0, 2, 0)
        assert client.uploads == []

    def test_changed_content_same_size(self, local_tree: Path) -> None:
        """SIZE_ETAG should catch same-size edits; SIZE should not."""
        client = FakeClient()
        smart_sync(client, local_tree, "/backup")  # type: ignore[arg-type]
        (local_tree / "a.txt").write_bytes(b"z" * 10)

        size_only = smart_sync(client, local_tree, "/backup", policy=ComparisonPolicy.SIZE)  # type: ignore[arg-type]
        with_etag = smart_sync(client, local_tree, "/backup", policy=ComparisonPolicy.SIZE_ETAG)  # type: ignore[arg-type]

        assert counts(size_only) == (2, 0, 2, 0)
        assert counts(with_etag) == (2, 1, 1, 0)
        assert client.files["/backup/a.txt"] == b"z" * 10

    def test_parent_directories_requested(self, local_tree: Path) -> None:
        """Each task should ensure its remote parent directory."""
        client = FakeClient()
        smart_sync(client, local_tree, "/backup")  # type: ignore[arg-type]
        assert sorted(client.directories) == ["/backup", "/backup/sub"]

    def test_empty_tree(self, tmp_path: Path) -> None:
        """An empty tree should give an all-zero report."""
        report = smart_sync(FakeClient(), tmp_path, "/backup")  # type: ignore[arg-type]
        assert counts(report) == (0, 0, 0, 0)
        assert report.success


class TestFailures:
    """Tests for per-task failure isolation."""

    def test_failed_upload_is_counted(self, local_tree: Path) -> None:
        """A failing task should not stop the others."""
        client = FakeClient()
        client.fail_uploads.add("/backup/sub/b.txt")

        report = smart_sync(client, local_tree, "/backup", concurrency=2)  # type: ignore[arg-type]

        assert counts(report) == (2, 1, 0, 1)
        assert not report.success
        assert "/backup/a.txt" in client.files

    def test_failed_metadata_lookup_is_counted(self, local_tree: Path) -> None:
        """Errors while probing metadata should fail the task."""
        client = FakeClient()
        client.fail_heads.add("/backup/a.txt")

        report = smart_sync(client, local_tree, "/backup")  # type: ignore[arg-type]

        assert counts(report) == (2, 1, 0, 1)

    def test_deleted_local_file_fails(self, local_tree: Path) -> None:
        """A file removed after planning should fail its task only."""
        client = FakeClient()
        tasks = plan_tasks(local_tree, "/backup")
        (local_tree / "a.txt").unlink()

        report = run_sync(client, tasks)  # type: ignore[arg-type]

        assert counts(report) == (2, 1, 0, 1)

    def test_callback_errors_do_not_stop_workers(self, local_tree: Path) -> None:
        """An exception in on_result should be logged and ignored."""

        def on_result(task: SyncTask, outcome: TaskOutcome) -> None:
            raise RuntimeError("callback bug")

        report = smart_sync(FakeClient(), local_tree, "/backup", on_result=on_result)  # type: ignore[arg-type]

        assert counts(report) == (2, 2, 0, 0)


class TestScheduler:
    """Tests for SyncScheduler concurrency behavior."""

    @pytest.mark.parametrize("requested", [0, -3])
    def test_concurrency_floor(self, requested: int) -> None:
        """Concurrency below 1 should mean one worker."""
        assert SyncScheduler(FakeClient(), concurrency=requested).concurrency == 1  # type: ignore[arg-type]

    def test_each_task_processed_once(self, tmp_path: Path) -> None:
        """Every task should get exactly one outcome."""
        for i in range(40):
            (tmp_path / f"f{i:02d}.txt").write_bytes(b"x" * i)
        outcomes: list[tuple[str, TaskOutcome]] = []
        lock = threading.Lock()

        def on_result(task: SyncTask, outcome: TaskOutcome) -> None:
            with lock:
                outcomes.append((task.remote_path, outcome))

        report = smart_sync(FakeClient(), tmp_path, "r", concurrency=8, on_result=on_result)  # type: ignore[arg-type]

        assert report.processed == 40
        assert report.uploaded + report.skipped + report.failed == 40
        paths = [path for path, _ in outcomes]
        assert len(paths) == len(set(paths)) == 40

    def test_uploads_run_in_parallel(self, tmp_path: Path) -> None:
        """Several workers should upload at the same time, never more than the limit."""
        for i in range(12):
            (tmp_path / f"f{i}.txt").write_bytes(b"x")
        client = FakeClient(upload_delay=0.05)

        SyncScheduler(client, concurrency=3).run(plan_tasks(tmp_path, "r"))  # type: ignore[arg-type]

        assert 1 < client.max_active <= 3

    def test_elapsed_time_recorded(self, local_tree: Path) -> None:
        """The report should carry a non-negative duration."""
        report = smart_sync(FakeClient(), local_tree, "/backup")  # type: ignore[arg-type]
        assert report.elapsed_ms >= 0
        assert report.to_dict()["processed"] == 2
