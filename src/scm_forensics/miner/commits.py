"""Summary counters over a batch of commit records."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .base import CommitRecord
from .log import FilteredLog


def total_commits(commits: Iterable[CommitRecord]) -> int:
    """Number of distinct commits (a commit touching n files yields n records)."""
    return len({commit.id for commit in commits})


def distinct_authors(commits: Iterable[CommitRecord]) -> int:
    return len({commit.author for commit in commits})


def distinct_files(commits: Iterable[CommitRecord]) -> int:
    return len({commit.path for commit in commits})


def total_added(commits: Iterable[CommitRecord]) -> int:
    return sum(commit.added_lines for commit in commits)


def total_deleted(commits: Iterable[CommitRecord]) -> int:
    return sum(commit.deleted_lines for commit in commits)


@dataclass(frozen=True)
class CommitStatistics:
    """Aggregated counts of one batch of commits."""

    commit_count: int = 0
    author_count: int = 0
    files_count: int = 0
    added_lines: int = 0
    deleted_lines: int = 0

    @classmethod
    def from_commits(cls, commits: Iterable[CommitRecord]) -> "CommitStatistics":
        records = list(commits)
        return cls(
            commit_count=total_commits(records),
            author_count=distinct_authors(records),
            files_count=distinct_files(records),
            added_lines=total_added(records),
            deleted_lines=total_deleted(records),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "commit_count": self.commit_count,
            "author_count": self.author_count,
            "files_count": self.files_count,
            "added_lines": self.added_lines,
            "deleted_lines": self.deleted_lines,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommitStatistics":
        return cls(**{key: int(data.get(key, 0)) for key in cls().to_dict()})


def log_commits(commits: Iterable[CommitRecord], log: FilteredLog) -> CommitStatistics:
    """Log the summary of a commit batch.

    The line formats are matched verbatim by downstream reporting.
    """
    statistics = CommitStatistics.from_commits(commits)
    log.log_info("Found %d commits", statistics.commit_count)
    if statistics.commit_count > 0:
        log.log_info("-> %d authors", statistics.author_count)
        log.log_info("-> %d files", statistics.files_count)
        log.log_info("-> %d lines added", statistics.added_lines)
        log.log_info("-> %d lines deleted", statistics.deleted_lines)
    return statistics
