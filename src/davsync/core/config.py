"""Configuration classes and credential resolution for davsync.

This module provides:
- RemoteConfig: resolved connection settings for one WebDAV remote
- SyncSettings: runtime parameters (timeouts, retries, policy, concurrency)
- resolve_remote / load_remote: read a remote from an rclone-style config
"""

from __future__ import annotations

import configparser
import logging
from dataclasses import dataclass, field
from pathlib import Path

from davsync.core.crypto import DEFAULT_OBSCURE_KEY, reveal_secret
from davsync.core.types import ComparisonPolicy

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("url", "user", "pass")

DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY = 0.6  # seconds
DEFAULT_CONCURRENCY = 4


class ConfigUnavailableError(Exception):
    """Configuration file unreadable or remote section missing."""


@dataclass(frozen=True)
class RemoteConfig:
    """Connection settings for a WebDAV remote.

    Attributes:
        url: Base URL of the WebDAV endpoint (trailing slash removed).
        user: Basic auth user name.
        secret: Plaintext password.
        kind: Optional remote type from the config (e.g., "webdav").
    """

    url: str
    user: str
    secret: str
    kind: str | None = None

    def __post_init__(self) -> None:
        """Normalize URL."""
        object.__setattr__(self, "url", self.url.rstrip("/"))


@dataclass
class SyncSettings:
    """Runtime parameters for the transport and scheduler.

    Attributes:
        timeout: Per-request timeout in seconds.
        max_retries: Additional attempts after a transient failure.
        retry_delay: Base delay in seconds; attempt n waits delay * (n + 1).
        policy: Comparison policy for skip decisions.
        concurrency: Number of sync workers (minimum 1).
        obscure_key: AES key used to reveal obscured secrets.
    """

    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    policy: ComparisonPolicy = ComparisonPolicy.SIZE_ETAG
    concurrency: int = DEFAULT_CONCURRENCY
    obscure_key: bytes = field(default=DEFAULT_OBSCURE_KEY, repr=False)

    def __post_init__(self) -> None:
        """Validate values."""
        self.policy = ComparisonPolicy.parse(self.policy)
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")
        if len(self.obscure_key) not in (16, 24, 32):
            raise ValueError("obscure_key must be 16, 24 or 32 bytes")


def default_config_path() -> Path:
    """Get the default rclone config file path.

    Returns:
        Path to ~/.config/rclone/rclone.conf.
    """
    return Path.home() / ".config" / "rclone" / "rclone.conf"


def resolve_remote(
    config_text: str,
    remote_name: str,
    key: bytes = DEFAULT_OBSCURE_KEY,
) -> RemoteConfig | None:
    """Resolve a remote from the text of an rclone-style config.

    Args:
        config_text: INI document with one section per remote.
        remote_name: Section to read.
        key: AES key used to reveal the obscured password.

    Returns:
        RemoteConfig, or None if the document does not parse or the
        section is missing or incomplete.
    """
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read_string(config_text)
    except configparser.Error as e:
        logger.warning(f"Failed to parse config: {e}")
        return None

    if not parser.has_section(remote_name):
        return None

    section = parser[remote_name]
    missing = [k for k in REQUIRED_KEYS if k not in section]
    if missing:
        logger.warning(f"Remote [{remote_name}] is missing keys: {', '.join(missing)}")
        return None

    revealed = reveal_secret(section["pass"], key)
    if section["pass"] and not revealed.decrypted:
        logger.warning(f"Password for [{remote_name}] could not be revealed, using it as-is")

    return RemoteConfig(
        url=section["url"],
        user=section["user"],
        secret=revealed.value,
        kind=section.get("type"),
    )


def load_remote(
    config_path: Path,
    remote_name: str,
    key: bytes = DEFAULT_OBSCURE_KEY,
) -> RemoteConfig:
    """Load a remote from a config file.

    Args:
        config_path: Path to the rclone config file.
        remote_name: Section to read.
        key: AES key used to reveal the obscured password.

    Returns:
        The resolved RemoteConfig.

    Raises:
        ConfigUnavailableError: If the file cannot be read or the remote
            is not found.
    """
    try:
        text = Path(config_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigUnavailableError(f"Cannot read config {config_path}: {e}") from e

    remote = resolve_remote(text, remote_name, key)
    if remote is None:
        raise ConfigUnavailableError(f"Remote [{remote_name}] was not found in {config_path}")
    return remote
