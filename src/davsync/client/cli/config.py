"""Configuration utilities for davsync CLI.

This module provides shared helpers used across CLI commands: the context
object built by the root group, client construction and logging setup.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

import click

from davsync.client.api import WebDAVClient
from davsync.core.config import (
    ConfigUnavailableError,
    SyncSettings,
    default_config_path,
    load_remote,
)


@dataclass
class CliContext:
    """Options shared by all commands (stored in ``ctx.obj``)."""

    config_path: Path = field(default_factory=default_config_path)
    remote_name: str | None = None
    settings: SyncSettings = field(default_factory=SyncSettings)


def setup_logging(verbose: bool) -> None:
    """Send davsync log records to stderr.

    Args:
        verbose: Show debug messages when True.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    davsync_logger = logging.getLogger("davsync")
    davsync_logger.handlers.clear()
    davsync_logger.addHandler(handler)
    davsync_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    davsync_logger.propagate = False


def parse_key_hex(value: str) -> bytes:
    """Parse an AES key given as hex.

    Raises:
        click.BadParameter: If the value is not 16, 24 or 32 bytes of hex.
    """
    try:
        key = bytes.fromhex(value)
    except ValueError as e:
        raise click.BadParameter(f"not valid hex: {e}") from e
    if len(key) not in (16, 24, 32):
        raise click.BadParameter("key must be 16, 24 or 32 bytes")
    return key


def open_client(obj: CliContext) -> WebDAVClient:
    """Resolve the selected remote and create a client.

    Exits with status 1 if the configuration is unavailable.
    """
    if not obj.remote_name:
        click.echo("Error: no remote given. Use --remote or DAVSYNC_REMOTE.", err=True)
        sys.exit(1)

    try:
        remote = load_remote(obj.config_path, obj.remote_name, obj.settings.obscure_key)
    except ConfigUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    return WebDAVClient(remote, obj.settings)
