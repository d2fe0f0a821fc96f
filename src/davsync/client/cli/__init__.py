"""Command-line interface for davsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- sync: Upload a local folder to a remote folder, skipping unchanged files
- upload: Upload one local file
- download: Download one remote file
- upload-url: Upload the content of a URL
- reveal: Decrypt an obscured password
- obscure: Obscure a password
"""

from __future__ import annotations

from pathlib import Path

import click

from davsync.client.cli.config import (
    CliContext,
    open_client,
    parse_key_hex,
    setup_logging,
)
from davsync.client.cli.secret import obscure, reveal
from davsync.client.cli.sync import sync
from davsync.client.cli.transfer import download, upload, upload_url
from davsync.core.config import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    SyncSettings,
    default_config_path,
)
from davsync.core.crypto import DEFAULT_OBSCURE_KEY_HEX


@click.group()
@click.version_option(package_name="davsync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar=["DAVSYNC_CONFIG", "RCLONE_CONFIG"],
    help="rclone-style config file (default: ~/.config/rclone/rclone.conf).",
)
@click.option(
    "--remote",
    "remote_name",
    default=None,
    envvar="DAVSYNC_REMOTE",
    help="Name of the remote section in the config file.",
)
@click.option(
    "--timeout-ms",
    type=click.IntRange(min=1),
    default=int(DEFAULT_TIMEOUT * 1000),
    show_default=True,
    envvar="DAVSYNC_TIMEOUT_MS",
    help="Per-request timeout in milliseconds.",
)
@click.option(
    "--max-retries",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_RETRIES,
    show_default=True,
    envvar="DAVSYNC_MAX_RETRIES",
    help="Retries after a transient failure.",
)
@click.option(
    "--retry-delay-ms",
    type=click.IntRange(min=0),
    default=int(DEFAULT_RETRY_DELAY * 1000),
    show_default=True,
    envvar="DAVSYNC_RETRY_DELAY_MS",
    help="Base delay between retries in milliseconds.",
)
@click.option(
    "--key-hex",
    default=DEFAULT_OBSCURE_KEY_HEX,
    envvar="DAVSYNC_OBSCURE_KEY",
    help="AES key (hex) used to reveal obscured passwords.",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug output.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    remote_name: str | None,
    timeout_ms: int,
    max_retries: int,
    retry_delay_ms: int,
    key_hex: str,
    verbose: bool,
) -> None:
    """davsync - Parallel one-way sync to a WebDAV remote."""
    setup_logging(verbose)
    ctx.obj = CliContext(
        config_path=config_path or default_config_path(),
        remote_name=remote_name,
        settings=SyncSettings(
            timeout=timeout_ms / 1000,
            max_retries=max_retries,
            retry_delay=retry_delay_ms / 1000,
            obscure_key=parse_key_hex(key_hex),
        ),
    )


# Transfer commands
cli.add_command(sync)
cli.add_command(upload)
cli.add_command(download)
cli.add_command(upload_url)

# Secret commands
cli.add_command(reveal)
cli.add_command(obscure)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "CliContext",
    "cli",
    "main",
    "open_client",
]
