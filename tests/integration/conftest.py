"""Pytest fixtures for integration tests.

This module provides an in-memory WebDAV server reached through
httpx.MockTransport, so the real WebDAVClient, scheduler and CLI run
end to end without a network.
"""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from davsync.client.api import WebDAVClient, basic_auth_header
from davsync.core.config import RemoteConfig, SyncSettings
from davsync.core.crypto import obscure

BASE_URL = "https://dav.test/remote.php/dav"
USER = "alice"
SECRET = "correct horse"


@dataclass
class FakeDavServer:
    """Minimal WebDAV server keeping files in memory."""

    files: dict[str, bytes] = field(default_factory=dict)
    directories: set[str] = field(default_factory=set)
    requests: list[tuple[str, str]] = field(default_factory=list)
    failures: dict[tuple[str, str], list[int]] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def transport(self) -> httpx.MockTransport:
        """Transport routing client requests to this server."""
        return httpx.MockTransport(self.handle)

    def count(self, method: str) -> int:
        """Number of requests received with the given method."""
        with self.lock:
            return sum(1 for m, _ in self.requests if m == method)

    def fail_next(self, method: str, path: str, *statuses: int) -> None:
        """Answer the next requests for method/path with the given statuses."""
        self.failures[(method, path)] = list(statuses)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.url.host != "dav.test":
            return httpx.Response(200, content=b"external content")

        prefix = "/remote.php/dav/"
        path = request.url.path[len(prefix) :].rstrip("/")
        method = request.method

        with self.lock:
            self.requests.append((method, path))
            pending = self.failures.get((method, path))
            if pending:
                return httpx.Response(pending.pop(0))

        if request.headers.get("Authorization") != basic_auth_header(USER, SECRET):
            return httpx.Response(401)

        with self.lock:
            if method == "MKCOL":
                if path in self.directories:
                    return httpx.Response(405)
                self.directories.add(path)
                return httpx.Response(201)

            if method == "PUT":
                data = request.content
                self.files[path] = data
                return httpx.Response(201, headers={"ETag": f'"{hashlib.md5(data).hexdigest()}"'})

            data = self.files.get(path)
            if data is None:
                return httpx.Response(404)
            headers = {
                "Content-Length": str(len(data)),
                "ETag": f'"{hashlib.md5(data).hexdigest()}"',
                "Last-Modified": "Wed, 01 Jan 2025 10:00:00 GMT",
            }
            if method == "HEAD":
                return httpx.Response(200, headers=headers)
            if method == "GET":
                return httpx.Response(200, content=data)
        return httpx.Response(405)


@pytest.fixture
def dav_server() -> FakeDavServer:
    """Create an empty in-memory WebDAV server."""
    return FakeDavServer()


@pytest.fixture
def dav_client(dav_server: FakeDavServer) -> Generator[WebDAVClient, None, None]:
    """Create a client connected to the in-memory server."""
    client = WebDAVClient(
        RemoteConfig(url=BASE_URL, user=USER, secret=SECRET),
        SyncSettings(retry_delay=0.0),
        transport=dav_server.transport,
        sleep=lambda _: None,
    )
    yield client
    client.close()


@pytest.fixture
def rclone_config(tmp_path: Path) -> Path:
    """Write an rclone config with an obscured password for the server."""
    path = tmp_path / "rclone.conf"
    path.write_text(
        f"[testdav]\ntype = webdav\nurl = {BASE_URL}/\nuser = {USER}\npass = {obscure(SECRET)}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def local_tree(tmp_path: Path) -> Path:
    """Create a local tree with nested directories."""
    root = tmp_path / "local"
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"a" * 10)
    (root / "sub" / "b.txt").write_bytes(b"b" * 20)
    (root / "sub" / "deep" / "c d.txt").write_bytes(b"hello")
    (root / "sub" / "deep" / "é.bin").write_bytes(b"\x00\x01\x02")
    return root
