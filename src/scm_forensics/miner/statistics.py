"""Per-file and per-repository statistics assembled from commit records."""

import bisect
from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import structlog

from .base import CommitRecord
from .commits import CommitStatistics

logger = structlog.get_logger(__name__)


class FileStatistics:
    """Accumulates the commit history of a single file.

    History is kept oldest first. Derived metrics are cached and updated on
    every ``add`` so that files with long histories stay cheap to query.
    """

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        self._history: list[CommitRecord] = []
        self._commit_ids: set[str] = set()
        self._authors: Counter[str] = Counter()
        self._added = 0
        self._deleted = 0
        self._net = 0

    def add(self, record: CommitRecord) -> bool:
        """Add a commit record; returns False if the commit is already known."""
        if record.id in self._commit_ids:
            logger.debug(
                "commit_already_recorded", file=self.file_name, commit=record.id
            )
            return False

        if self._history and record.timestamp < self._history[-1].timestamp:
            bisect.insort_right(self._history, record, key=lambda r: r.timestamp)
        else:
            self._history.append(record)

        self._commit_ids.add(record.id)
        self._authors[record.author] += 1
        self._added += record.added_lines
        self._deleted += record.deleted_lines
        self._net += record.added_lines - record.deleted_lines
        return True

    def absorb(self, other: "FileStatistics") -> None:
        """Continue the history of ``other`` under this file name."""
        for record in other._history:
            self.add(record)

    def copy(self) -> "FileStatistics":
        duplicate = FileStatistics(self.file_name)
        duplicate._history = list(self._history)
        duplicate._commit_ids = set(self._commit_ids)
        duplicate._authors = Counter(self._authors)
        duplicate._added = self._added
        duplicate._deleted = self._deleted
        duplicate._net = self._net
        return duplicate

    @property
    def history(self) -> tuple[CommitRecord, ...]:
        return tuple(self._history)

    @property
    def authors(self) -> frozenset[str]:
        return frozenset(self._authors)

    @property
    def author_count(self) -> int:
        return len(self._authors)

    @property
    def commit_count(self) -> int:
        return len(self._history)

    @property
    def added_lines(self) -> int:
        return self._added

    @property
    def deleted_lines(self) -> int:
        return self._deleted

    @property
    def lines_of_code(self) -> int:
        return max(self._net, 0)

    @property
    def churn(self) -> int:
        return self._added + self._deleted

    @property
    def is_deleted(self) -> bool:
        return bool(self._history) and self._history[-1].is_delete

    @property
    def last_commit_id(self) -> str | None:
        return self._history[-1].id if self._history else None

    @property
    def last_commit_time(self) -> datetime | None:
        return self._history[-1].timestamp if self._history else None

    @property
    def creation_time(self) -> datetime | None:
        return self._history[0].timestamp if self._history else None

    def age_days(self, now: datetime | None = None) -> int:
        """Days since the first recorded commit of this file."""
        if not self._history:
            return 0
        now = now or datetime.now(UTC)
        return max((now - self._history[0].timestamp).days, 0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileStatistics):
            return NotImplemented
        return self.file_name == other.file_name and self._history == other._history

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"FileStatistics({self.file_name!r}, commits={self.commit_count}, "
            f"authors={self.author_count}, loc={self.lines_of_code}, "
            f"churn={self.churn})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "history": [record.to_dict() for record in self._history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileStatistics":
        statistics = cls(data["file_name"])
        for entry in data.get("history", []):
            statistics.add(CommitRecord.from_dict(entry))
        return statistics


class RepositoryStatistics:
    """Snapshot of the statistics of all files of a repository.

    ``latest_commit_id`` is the newest commit that has been merged into the
    snapshot; an empty id marks a fresh snapshot.
    """

    def __init__(self, latest_commit_id: str = "") -> None:
        self.latest_commit_id = latest_commit_id
        self.latest_statistics: CommitStatistics | None = None
        # True when the latest batch was mined into an empty snapshot
        self.initial_recording = False
        self._files: dict[str, FileStatistics] = {}

    def add_all(self, other: "RepositoryStatistics") -> None:
        """Merge the files of another snapshot into this one (deep copy)."""
        for name, statistics in other._files.items():
            if name in self._files:
                self._files[name].absorb(statistics)
            else:
                self._files[name] = statistics.copy()

    def add_commits(self, commits: Iterable[CommitRecord]) -> None:
        """Fold a chronologically ordered (oldest first) batch of records in."""
        records = list(commits)
        for record in records:
            if record.is_rename:
                self._relink(record.old_path, record.path)  # type: ignore[arg-type]
            statistics = self._files.get(record.path)
            if statistics is None:
                statistics = FileStatistics(record.path)
                self._files[record.path] = statistics
            statistics.add(record)
        self.latest_statistics = CommitStatistics.from_commits(records)

    def _relink(self, old_path: str, new_path: str) -> None:
        previous = self._files.pop(old_path, None)
        if previous is None:
            return
        target = self._files.get(new_path)
        if target is None:
            target = FileStatistics(new_path)
            self._files[new_path] = target
        target.absorb(previous)
        logger.debug("file_renamed", old_path=old_path, new_path=new_path)

    def prune_deleted(self) -> list[str]:
        """Remove tombstoned files, returning their paths."""
        removed = [name for name, stats in self._files.items() if stats.is_deleted]
        for name in removed:
            del self._files[name]
        return removed

    def copy(self) -> "RepositoryStatistics":
        duplicate = RepositoryStatistics(self.latest_commit_id)
        duplicate.latest_statistics = self.latest_statistics
        duplicate.initial_recording = self.initial_recording
        duplicate.add_all(self)
        return duplicate

    def get(self, file_name: str) -> FileStatistics | None:
        return self._files.get(file_name)

    def __contains__(self, file_name: object) -> bool:
        return file_name in self._files

    def __len__(self) -> int:
        return len(self._files)

    def is_empty(self) -> bool:
        return not self._files

    @property
    def file_names(self) -> list[str]:
        return list(self._files)

    @property
    def files(self) -> dict[str, FileStatistics]:
        """All entries, tombstones included."""
        return dict(self._files)

    def current_files(self) -> list[FileStatistics]:
        return [stats for stats in self._files.values() if not stats.is_deleted]

    @property
    def total_lines_of_code(self) -> int:
        return sum(stats.lines_of_code for stats in self.current_files())

    @property
    def total_churn(self) -> int:
        return sum(stats.churn for stats in self.current_files())

    @property
    def total_commits(self) -> int:
        return sum(stats.commit_count for stats in self._files.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositoryStatistics):
            return NotImplemented
        return (
            self.latest_commit_id == other.latest_commit_id
            and self._files == other._files
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"RepositoryStatistics(latest_commit_id={self.latest_commit_id!r}, "
            f"files={len(self._files)})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "latest_commit_id": self.latest_commit_id,
            "latest_statistics": (
                self.latest_statistics.to_dict() if self.latest_statistics else None
            ),
            "initial_recording": self.initial_recording,
            "files": [stats.to_dict() for stats in self._files.values()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepositoryStatistics":
        statistics = cls(data.get("latest_commit_id") or "")
        statistics.initial_recording = bool(data.get("initial_recording", False))
        if data.get("latest_statistics"):
            statistics.latest_statistics = CommitStatistics.from_dict(
                data["latest_statistics"]
            )
        for entry in data.get("files", []):
            file_statistics = FileStatistics.from_dict(entry)
            statistics._files[file_statistics.file_name] = file_statistics
        return statistics
