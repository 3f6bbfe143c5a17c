"""Incremental aggregation of commit history into repository statistics."""

from .base import (
    CollectedCommits,
    CommitCollector,
    CommitRecord,
    ForensicsError,
    GitReaderError,
    RepositoryMiner,
    RepositoryNotFoundError,
    SnapshotStorageError,
)
from .commits import CommitStatistics, log_commits
from .log import FilteredLog
from .statistics import FileStatistics, RepositoryStatistics
from .storage import SnapshotStore

__all__ = [
    # Interfaces
    "CommitCollector",
    "RepositoryMiner",
    # Data classes
    "CommitRecord",
    "CollectedCommits",
    "CommitStatistics",
    "FileStatistics",
    "RepositoryStatistics",
    # Helpers
    "FilteredLog",
    "SnapshotStore",
    "log_commits",
    # Errors
    "ForensicsError",
    "GitReaderError",
    "RepositoryNotFoundError",
    "SnapshotStorageError",
]
