"""SCM Forensics command line interface."""

from scm_forensics.cli.main import cli

__all__ = ["cli"]
