"""Git integration: commit collection and repository mining.

Uses GitPython to walk the commit history of a working tree.
"""

from .collector import (
    GitPythonCollector,
    author_identity,
    count_blob_lines,
    count_changed_lines,
)
from .miner import GitRepositoryMiner

__all__ = [
    "GitPythonCollector",
    "GitRepositoryMiner",
    "author_identity",
    "count_blob_lines",
    "count_changed_lines",
]
