"""Single-file transfer commands for davsync CLI.

Commands:
- upload: Upload one local file
- download: Download one remote file
- upload-url: Upload the content of a URL
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click
import httpx

from davsync.client.api import TransportError
from davsync.client.cli.config import CliContext, open_client

TRANSFER_ERRORS = (TransportError, httpx.HTTPError, OSError)


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def url_target_directory(remote_path: str) -> str:
    """Get the remote directory an upload-from-URL will write into."""
    if remote_path.endswith("/"):
        return remote_path[:-1]
    index = remote_path.rfind("/")
    return remote_path[:index] if index >= 0 else ""


@click.command()
@click.argument(
    "local_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument("remote_path")
@click.pass_obj
def upload(obj: CliContext, local_file: Path, remote_path: str) -> None:
    """Upload LOCAL_FILE to REMOTE_PATH.

    If REMOTE_PATH ends with "/", the local file name is kept.
    """
    with open_client(obj) as client:
        try:
            written = client.upload(local_file, remote_path)
        except TRANSFER_ERRORS as e:
            _fail(str(e))
    click.echo(f"Uploaded: {written}")


@click.command()
@click.argument("remote_path")
@click.argument("local_file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def download(obj: CliContext, remote_path: str, local_file: Path) -> None:
    """Download REMOTE_PATH to LOCAL_FILE (overwritten if present)."""
    with open_client(obj) as client:
        try:
            written = client.download(remote_path, local_file)
        except TRANSFER_ERRORS as e:
            _fail(str(e))
    click.echo(f"Downloaded: {written}")


@click.command("upload-url")
@click.argument("url")
@click.argument("remote_path")
@click.pass_obj
def upload_url(obj: CliContext, url: str, remote_path: str) -> None:
    """Upload the content of URL to REMOTE_PATH.

    If REMOTE_PATH ends with "/", the file name comes from the response
    (Content-Disposition) or from the URL.
    """
    with open_client(obj) as client:
        directory = url_target_directory(remote_path)
        if directory:
            client.create_directory(directory)
        try:
            written = client.upload_from_url(url, remote_path)
        except TRANSFER_ERRORS as e:
            _fail(str(e))
    click.echo(f"Uploaded: {written}")
