"""SCM Forensics CLI main entry point."""

import click

from scm_forensics import __version__, config
from scm_forensics.logging import LOG_LEVELS, configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="scm-forensics")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (defaults to the configured level).",
)
def cli(log_level: str | None) -> None:
    """SCM Forensics - per-file statistics mined from Git history.

    Each run only analyzes commits newer than the previous snapshot.
    """
    settings = config.settings
    configure_logging(log_level or settings.log_level, settings.log_format)


from scm_forensics.cli.mine import mine  # noqa: E402
from scm_forensics.cli.report import report  # noqa: E402

cli.add_command(mine)
cli.add_command(report)
