"""SCM Forensics mine command."""

import asyncio
from pathlib import Path

import click

from scm_forensics import config
from scm_forensics.git import GitPythonCollector, GitRepositoryMiner
from scm_forensics.miner import (
    FilteredLog,
    RepositoryNotFoundError,
    RepositoryStatistics,
    SnapshotStorageError,
    SnapshotStore,
)
from scm_forensics.report import summary_lines


async def _run(
    miner: GitRepositoryMiner,
    store: SnapshotStore,
    name: str,
    log: FilteredLog,
    reset: bool,
) -> RepositoryStatistics:
    previous = RepositoryStatistics() if reset else await store.load(name)
    current = await miner.mine(previous, log)
    if log.has_errors() and current.is_empty():
        # Mining was unavailable this run; keep the stored baseline.
        return current
    await store.save(name, current)
    return current


@click.command()
@click.argument(
    "repo_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--name",
    default=None,
    help="Snapshot name (defaults to the repository directory name).",
)
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the snapshots.",
)
@click.option(
    "--include-merges/--skip-merges",
    default=None,
    help="Record file changes of merge commits.",
)
@click.option(
    "--reset",
    is_flag=True,
    help="Ignore the stored snapshot and mine the complete history.",
)
def mine(
    repo_path: Path,
    name: str | None,
    state_dir: Path | None,
    include_merges: bool | None,
    reset: bool,
) -> None:
    """Mine new commits of REPO_PATH into the stored snapshot."""
    settings = config.settings
    if include_merges is None:
        include_merges = settings.include_merges

    try:
        collector = GitPythonCollector(
            repo_path,
            include_merges=include_merges,
            detect_renames=settings.detect_renames,
        )
    except RepositoryNotFoundError as e:
        raise click.ClickException(str(e)) from e

    store = SnapshotStore(state_dir or settings.snapshot_dir)
    name = name or repo_path.resolve().name
    log = FilteredLog(max_errors=settings.max_log_errors)

    try:
        statistics = asyncio.run(
            _run(GitRepositoryMiner(collector), store, name, log, reset)
        )
    except SnapshotStorageError as e:
        raise click.ClickException(str(e)) from e

    for line in log.info_messages:
        click.echo(line)

    if log.has_errors():
        for line in log.error_messages:
            click.echo(line, err=True)
        if statistics.is_empty():
            raise click.ClickException(
                f"Mining of {repo_path} failed, snapshot '{name}' left unchanged"
            )

    click.echo()
    click.echo("SCM Statistics")
    for line in summary_lines(statistics):
        click.echo(f"  {line}")
