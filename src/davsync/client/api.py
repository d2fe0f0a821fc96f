"""HTTP client for WebDAV remotes.

This module provides:
- WebDAVClient: Authenticated client used by the sync engine
- Directory creation with per-path deduplication across threads
- Metadata probing, upload, upload-from-URL and download with retry
"""

from __future__ import annotations

import base64
import logging
import posixpath
import re
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, unquote, urlsplit

import httpx

from davsync.client.sync.planner import join_remote
from davsync.client.sync.retry import RetryPolicy, is_retryable_status
from davsync.core.config import RemoteConfig, SyncSettings

logger = logging.getLogger(__name__)

# MKCOL statuses meaning the collection exists afterwards
MKCOL_OK_STATUSES = frozenset({201, 301, 405, 409})

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DOWNLOAD_CHUNK_SIZE = 64 * 1024

_EXT_FILENAME_RE = re.compile(r"filename\*=UTF-8''([^;]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename=\s*"?([^";]+)"?', re.IGNORECASE)


class TransportError(Exception):
    """Base exception for remote transport errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class RemoteStatusError(TransportError):
    """Remote answered with a non-success status."""

    @classmethod
    def from_response(cls, operation: str, response: httpx.Response) -> RemoteStatusError:
        """Build an error classified by the response status."""
        status = response.status_code
        return cls(
            f"{operation} failed: {status} {response.reason_phrase}",
            status_code=status,
            retryable=is_retryable_status(status),
        )


@dataclass(frozen=True)
class RemoteMetadata:
    """Metadata of a remote file from a HEAD request."""

    size: int | None
    etag: str | None
    last_modified: str | None


def clean_path(path: str) -> str:
    """Percent-encode each segment of a remote path.

    The leading slash is removed; slashes between segments are kept.
    """
    if path.startswith("/"):
        path = path[1:]
    return "/".join(quote(segment, safe="!*'()") for segment in path.split("/"))


def normalize_etag(etag: str | None) -> str | None:
    """Strip quote characters from an ETag header value."""
    if not etag:
        return None
    return etag.replace('"', "").strip() or None


def directory_key(remote_path: str) -> str:
    """Normalize a remote directory path for memoization.

    Paths naming the same collection (leading, trailing or repeated
    slashes, "." segments) map to the same key; the root maps to "".
    """
    return join_remote(remote_path).strip("/")


def basic_auth_header(user: str, secret: str) -> str:
    """Build a Basic Authorization header value."""
    token = base64.b64encode(f"{user}:{secret}".encode()).decode("ascii")
    return f"Basic {token}"


def pick_filename(url: str, content_disposition: str | None) -> str:
    """Choose a file name for content fetched from a URL.

    Order: RFC 6266 ``filename*``, plain ``filename``, the URL path
    basename, then a generated name.

    Args:
        url: Source URL.
        content_disposition: Content-Disposition header, if any.

    Returns:
        A non-empty file name.
    """
    if content_disposition:
        match = _EXT_FILENAME_RE.search(content_disposition)
        if match:
            try:
                return unquote(match.group(1), errors="strict").strip()
            except UnicodeDecodeError:
                return match.group(1).strip()

        match = _FILENAME_RE.search(content_disposition)
        if match:
            return match.group(1).strip()

    try:
        name = posixpath.basename(unquote(urlsplit(url).path))
    except ValueError:
        name = ""
    if name and name not in ("/", "."):
        return name

    return f"download-{int(time.time() * 1000)}.bin"


class WebDAVClient:
    """HTTP client for a WebDAV remote.

    One instance is shared by all sync workers. Besides the underlying
    connection pool, its only mutable state is the set of directories
    known to exist and the map of in-flight directory creations.

    Usage:
        with WebDAVClient(remote_config) as client:
            client.create_directory("backup/photos")
            client.upload(Path("a.jpg"), "backup/photos/a.jpg")
    """

    def __init__(
        self,
        config: RemoteConfig,
        settings: SyncSettings | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            config: Remote URL and credentials.
            settings: Timeout and retry settings (defaults if omitted).
            transport: Optional httpx transport (used by tests).
            sleep: Sleep function used between retries.
        """
        settings = settings or SyncSettings()
        self._base_url = config.url.rstrip("/")
        self._retry = RetryPolicy(
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            sleep=sleep,
        )
        self._client = httpx.Client(
            headers={"Authorization": basic_auth_header(config.user, config.secret)},
            timeout=settings.timeout,
            transport=transport,
        )
        # Unauthenticated; used for third-party source URLs
        self._fetch_client = httpx.Client(
            timeout=settings.timeout,
            follow_redirects=True,
            transport=transport,
        )

        self._dir_lock = threading.Lock()
        self._created_dirs: set[str] = set()
        self._pending_dirs: dict[str, threading.Event] = {}

    @property
    def retry_policy(self) -> RetryPolicy:
        """Get the retry policy applied to network operations."""
        return self._retry

    def close(self) -> None:
        """Close the HTTP clients."""
        self._client.close()
        self._fetch_client.close()

    def __enter__(self) -> WebDAVClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def url_for(self, remote_path: str) -> str:
        """Get the full URL of a remote path."""
        return f"{self._base_url}/{clean_path(remote_path)}"

    # === Directories ===

    def create_directory(self, remote_path: str) -> None:
        """Create a remote directory (MKCOL), at most once per path.

        Concurrent callers for the same path wait for the first caller's
        request instead of sending their own. Errors are logged and never
        raised; only a successful status marks the path as created.

        Args:
            remote_path: Remote directory path.
        """
        key = directory_key(remote_path)
        if not key:
            return

        with self._dir_lock:
            if key in self._created_dirs:
                return
            pending = self._pending_dirs.get(key)
            if pending is None:
                pending = threading.Event()
                self._pending_dirs[key] = pending
                owner = True
            else:
                owner = False

        if not owner:
            pending.wait()
            return

        created = False
        try:
            response = self._client.request("MKCOL", self.url_for(key))
            created = response.status_code in MKCOL_OK_STATUSES
            if not created:
                logger.debug(f"MKCOL {key} returned {response.status_code}")
        except Exception as e:
            logger.debug(f"MKCOL {key} failed: {e}")
        finally:
            with self._dir_lock:
                if created:
                    self._created_dirs.add(key)
                self._pending_dirs.pop(key, None)
            pending.set()

    def is_directory_known(self, remote_path: str) -> bool:
        """Check whether a directory was already created or confirmed."""
        key = directory_key(remote_path)
        with self._dir_lock:
            return key in self._created_dirs

    # === Metadata ===

    def probe_metadata(self, remote_path: str) -> RemoteMetadata | None:
        """Get size, ETag and Last-Modified of a remote file (HEAD).

        Args:
            remote_path: Remote file path.

        Returns:
            RemoteMetadata, or None if the file does not exist or the
            server refused with a non-retryable status.

        Raises:
            RemoteStatusError: On a retryable status after all retries.
        """
        url = self.url_for(remote_path)

        def attempt() -> RemoteMetadata | None:
            response = self._client.head(url)
            if response.status_code == 404:
                return None
            if not response.is_success:
                error = RemoteStatusError.from_response("HEAD", response)
                if error.retryable:
                    raise error
                logger.debug(f"HEAD {remote_path}: {response.status_code}, treating as absent")
                return None

            length = response.headers.get("Content-Length")
            return RemoteMetadata(
                size=int(length) if length and length.isdigit() else None,
                etag=normalize_etag(response.headers.get("ETag")),
                last_modified=response.headers.get("Last-Modified"),
            )

        return self._retry.call(attempt, f"HEAD {remote_path}")

    # === Transfers ===

    def upload(self, local_path: Path, remote_path: str) -> str:
        """Upload a local file (PUT), streaming its content.

        Args:
            local_path: File to upload.
            remote_path: Destination; if it ends with "/", the local file
                name is appended.

        Returns:
            The remote path actually written.

        Raises:
            RemoteStatusError: If the server rejects the upload.
            OSError: If the local file cannot be read.
        """
        local_path = Path(local_path)
        if remote_path.endswith("/"):
            remote_path = join_remote(remote_path, local_path.name)
        else:
            remote_path = join_remote(remote_path)
        url = self.url_for(remote_path)

        def attempt() -> None:
            with open(local_path, "rb") as f:
                size = local_path.stat().st_size
                response = self._client.put(
                    url,
                    content=f,
                    headers={
                        "Content-Length": str(size),
                        "Content-Type": DEFAULT_CONTENT_TYPE,
                    },
                )
            if not response.is_success:
                raise RemoteStatusError.from_response("PUT", response)

        self._retry.call(attempt, f"PUT {remote_path}")
        return remote_path

    def upload_from_url(self, source_url: str, remote_path: str) -> str:
        """Fetch a URL and stream its body into a remote file.

        Args:
            source_url: URL to fetch (requested without credentials).
            remote_path: Destination; if it ends with "/", a file name is
                derived from the response or the URL.

        Returns:
            The remote path actually written.

        Raises:
            TransportError: If fetching the source fails.
            RemoteStatusError: If the server rejects the upload.
        """

        def attempt() -> str:
            with self._fetch_client.stream("GET", source_url) as source:
                if not source.is_success:
                    raise RemoteStatusError.from_response("GET source", source)

                if remote_path.endswith("/"):
                    name = pick_filename(source_url, source.headers.get("Content-Disposition"))
                    target = join_remote(remote_path, name)
                else:
                    target = join_remote(remote_path)

                headers = {
                    "Content-Type": source.headers.get("Content-Type", DEFAULT_CONTENT_TYPE),
                }
                length = source.headers.get("Content-Length")
                if length and "Content-Encoding" not in source.headers:
                    headers["Content-Length"] = length

                response = self._client.put(
                    self.url_for(target),
                    content=source.iter_bytes(),
                    headers=headers,
                )
            if not response.is_success:
                raise RemoteStatusError.from_response("PUT", response)
            return target

        return self._retry.call(attempt, f"PUT {remote_path} from {source_url}")

    def download(self, remote_path: str, local_path: Path) -> Path:
        """Download a remote file (GET), streaming it to disk.

        Args:
            remote_path: Remote file path.
            local_path: Destination file (created or truncated).

        Returns:
            The local path written.

        Raises:
            RemoteStatusError: If the server does not return the file.
            OSError: If the local file cannot be written.
        """
        local_path = Path(local_path)
        url = self.url_for(remote_path)

        def attempt() -> None:
            with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise RemoteStatusError.from_response("GET", response)
                local_path.parent.mkdir(parents=True, exist_ok=True)
                with open(local_path, "wb") as f:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)

        self._retry.call(attempt, f"GET {remote_path}")
        return local_path
