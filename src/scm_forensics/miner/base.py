"""Base classes, dataclasses, and types for repository mining."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from scm_forensics.utils.datetime import deserialize_datetime, serialize_datetime

from .log import FilteredLog

if TYPE_CHECKING:
    from .statistics import RepositoryStatistics


class ForensicsError(Exception):
    """Base exception for SCM forensics errors."""

    pass


class GitReaderError(ForensicsError):
    """Repository could not be read (I/O failure, broken index, bad revision)."""

    pass


class RepositoryNotFoundError(GitReaderError):
    """Repository path is not a valid git repository."""

    pass


class SnapshotStorageError(ForensicsError):
    """Persisted snapshot could not be read or written."""

    pass


@dataclass(frozen=True)
class CommitRecord:
    """The effect of one commit on one file."""

    id: str
    timestamp: datetime  # Always UTC, timezone-aware
    author: str
    path: str
    added_lines: int = 0
    deleted_lines: int = 0
    is_delete: bool = False
    old_path: str | None = None

    def __post_init__(self) -> None:
        if self.added_lines < 0 or self.deleted_lines < 0:
            raise ValueError(
                f"Line counts must be non-negative, got +{self.added_lines}"
                f"/-{self.deleted_lines} for {self.path} in {self.id}"
            )
        if self.is_delete and self.added_lines > 0:
            raise ValueError(
                f"Deleting commit {self.id} cannot add lines to {self.path}"
            )

    @property
    def is_rename(self) -> bool:
        return bool(self.old_path) and self.old_path != self.path

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": serialize_datetime(self.timestamp),
            "author": self.author,
            "path": self.path,
            "added_lines": self.added_lines,
            "deleted_lines": self.deleted_lines,
            "is_delete": self.is_delete,
            "old_path": self.old_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommitRecord":
        return cls(
            id=data["id"],
            timestamp=deserialize_datetime(data["timestamp"]),
            author=data["author"],
            path=data["path"],
            added_lines=int(data.get("added_lines", 0)),
            deleted_lines=int(data.get("deleted_lines", 0)),
            is_delete=bool(data.get("is_delete", False)),
            old_path=data.get("old_path"),
        )


@dataclass
class CollectedCommits:
    """Result of a collector query.

    Records are ordered newest first. ``head_id`` is the newest commit that was
    walked, which may be a commit without file records (e.g. a merge).
    """

    records: list[CommitRecord] = field(default_factory=list)
    log: FilteredLog = field(default_factory=FilteredLog)
    head_id: str | None = None

    @property
    def latest_commit_id(self) -> str | None:
        if self.head_id:
            return self.head_id
        if self.records:
            return self.records[0].id
        return None


class CommitCollector(ABC):
    """Abstract base class for revision-control clients that enumerate commits."""

    @abstractmethod
    async def collect(self, since_commit_id: str = "") -> CollectedCommits:
        """Return all commits strictly newer than ``since_commit_id``.

        An empty id means "from the repository root".

        Raises:
            GitReaderError: If the repository cannot be read.
        """
        pass

    @abstractmethod
    def get_repo_root(self) -> str:
        pass


class RepositoryMiner(ABC):
    """Mines a repository and creates statistics for all available files."""

    @abstractmethod
    async def mine(
        self, previous: "RepositoryStatistics", log: FilteredLog
    ) -> "RepositoryStatistics":
        """Merge all commits newer than ``previous`` into a new snapshot.

        Never raises on I/O failure; cancellation propagates to the caller.
        """
        pass
