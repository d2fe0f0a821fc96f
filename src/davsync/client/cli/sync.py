"""Sync command for davsync CLI.

Commands:
- sync: Upload a local folder to a remote folder, skipping unchanged files
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from davsync.client.cli.config import CliContext, open_client
from davsync.client.sync import PlanningError, SyncTask, TaskOutcome, smart_sync
from davsync.core.types import ComparisonPolicy


@click.command()
@click.argument(
    "local_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.argument("remote_dir")
@click.option(
    "--concurrency",
    "-c",
    type=click.IntRange(min=1),
    default=None,
    envvar="DAVSYNC_CONCURRENCY",
    help="Number of parallel workers (default: 4).",
)
@click.option(
    "--policy",
    type=click.Choice([p.value for p in ComparisonPolicy]),
    default=None,
    envvar="DAVSYNC_POLICY",
    help="Comparison policy used to skip files (default: size+etag).",
)
@click.pass_obj
def sync(
    obj: CliContext,
    local_dir: Path,
    remote_dir: str,
    concurrency: int | None,
    policy: str | None,
) -> None:
    """Upload LOCAL_DIR to REMOTE_DIR in parallel.

    Files whose remote copy already matches are skipped.
    Exits with status 1 if any file failed.
    """
    settings = obj.settings
    if concurrency is not None:
        settings.concurrency = concurrency
    if policy is not None:
        settings.policy = ComparisonPolicy.parse(policy)

    def on_result(task: SyncTask, outcome: TaskOutcome) -> None:
        if outcome == TaskOutcome.FAILED:
            click.echo(f"Failed: {task.remote_path}", err=True)

    with open_client(obj) as client:
        try:
            report = smart_sync(
                client,
                local_dir,
                remote_dir,
                concurrency=settings.concurrency,
                policy=settings.policy,
                on_result=on_result,
            )
        except PlanningError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    click.echo("\nSync finished!")
    click.echo(f"Processed: {report.processed}")
    click.echo(f"Uploaded : {report.uploaded}")
    click.echo(f"Skipped  : {report.skipped}")
    click.echo(f"Failed   : {report.failed}")
    click.echo(f"Duration : {report.elapsed_ms / 1000:.2f}s")

    if not report.success:
        sys.exit(1)
