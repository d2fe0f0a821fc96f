"""Secret helper commands for davsync CLI.

Commands:
- reveal: Decrypt an obscured password from an rclone config
- obscure: Produce an obscured password for an rclone config
"""

from __future__ import annotations

import sys

import click

from davsync.client.cli.config import CliContext
from davsync.core.crypto import obscure as obscure_secret
from davsync.core.crypto import reveal_secret


@click.command()
@click.argument("obscured")
@click.pass_obj
def reveal(obj: CliContext, obscured: str) -> None:
    """Print the plaintext of an OBSCURED password.

    Exits with status 1 if the value could not be decrypted.
    """
    result = reveal_secret(obscured, obj.settings.obscure_key)
    if not result.decrypted:
        click.echo("Error: value is not an obscured secret.", err=True)
        sys.exit(1)
    click.echo(result.value)


@click.command()
@click.password_option("--secret", prompt="Password to obscure", help="Password to obscure.")
@click.pass_obj
def obscure(obj: CliContext, secret: str) -> None:
    """Print an obscured form of a password."""
    click.echo(obscure_secret(secret, obj.settings.obscure_key))
