"""SCM Forensics report command."""

import asyncio
from pathlib import Path

import click

from scm_forensics import config
from scm_forensics.miner import SnapshotStorageError, SnapshotStore
from scm_forensics.report import (
    FILE_NAME,
    HEADERS,
    format_table,
    summary_lines,
    table_rows,
)


@click.command()
@click.argument("name")
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the snapshots.",
)
@click.option(
    "--sort",
    "sort_by",
    type=click.Choice(HEADERS),
    default=FILE_NAME,
    show_default=True,
    help="Column to sort by.",
)
@click.option("--descending", is_flag=True, help="Sort in descending order.")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Show at most this many files.",
)
def report(
    name: str,
    state_dir: Path | None,
    sort_by: str,
    descending: bool,
    limit: int | None,
) -> None:
    """Show the stored statistics of snapshot NAME."""
    store = SnapshotStore(state_dir or config.settings.snapshot_dir)
    if not store.exists(name):
        raise click.ClickException(f"No snapshot named '{name}' in {store.directory}")

    try:
        statistics = asyncio.run(store.load(name))
    except SnapshotStorageError as e:
        raise click.ClickException(str(e)) from e

    for line in summary_lines(statistics):
        click.echo(line)
    click.echo()

    rows = table_rows(statistics, sort_by=sort_by, descending=descending)
    if limit is not None:
        rows = rows[:limit]
    click.echo(format_table(rows))
