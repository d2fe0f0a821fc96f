"""Core module - Shared config, crypto, and types."""

from davsync.core.config import (
    ConfigUnavailableError,
    RemoteConfig,
    SyncSettings,
    default_config_path,
    load_remote,
    resolve_remote,
)
from davsync.core.crypto import (
    DEFAULT_OBSCURE_KEY,
    RevealedSecret,
    compute_file_md5,
    obscure,
    reveal,
    reveal_secret,
)
from davsync.core.types import ComparisonPolicy

__all__ = [
    # Config
    "ConfigUnavailableError",
    "RemoteConfig",
    "SyncSettings",
    "default_config_path",
    "load_remote",
    "resolve_remote",
    # Crypto
    "DEFAULT_OBSCURE_KEY",
    "RevealedSecret",
    "compute_file_md5",
    "obscure",
    "reveal",
    "reveal_secret",
    # Types
    "ComparisonPolicy",
]
