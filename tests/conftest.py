"""Pytest configuration and fixtures."""

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import git
import pytest

from scm_forensics.miner import CommitRecord

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

# 2024-01-01T00:00:00Z
EPOCH = 1704067200
DAY = 86400

RecordFactory = Callable[..., CommitRecord]
CommitFiles = Callable[..., git.Commit]


def make_record(
    commit_id: str,
    path: str = "file.txt",
    author: str = "alice",
    added: int = 0,
    deleted: int = 0,
    day: int = 0,
    is_delete: bool = False,
    old_path: str | None = None,
) -> CommitRecord:
    """Build a commit record ``day`` days after BASE_TIME."""
    return CommitRecord(
        id=commit_id,
        timestamp=BASE_TIME + timedelta(days=day),
        author=author,
        path=path,
        added_lines=added,
        deleted_lines=deleted,
        is_delete=is_delete,
        old_path=old_path,
    )


@pytest.fixture
def record() -> RecordFactory:
    """Factory for commit records."""
    return make_record


@pytest.fixture
def temp_repo(tmp_path: Path) -> Iterator[tuple[Path, git.Repo]]:
    """Create an empty git repository."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    repo = git.Repo.init(repo_path)

    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")

    yield repo_path, repo
    repo.close()


@pytest.fixture
def commit_files(temp_repo: tuple[Path, git.Repo]) -> CommitFiles:
    """Commit a set of file changes with a given author and day offset.

    ``files`` maps paths to new content; ``None`` deletes the file.
    ``renames`` maps old paths to new paths (content is kept).
    """
    repo_path, repo = temp_repo

    def _commit(
        files: dict[str, str | None] | None = None,
        author: str = "alice",
        day: int = 0,
        message: str = "change",
        renames: dict[str, str] | None = None,
        parents: list[git.Commit] | None = None,
    ) -> git.Commit:
        for old, new in (renames or {}).items():
            content = (repo_path / old).read_bytes()
            (repo_path / new).parent.mkdir(parents=True, exist_ok=True)
            (repo_path / new).write_bytes(content)
            repo.index.remove([old], working_tree=True)
            repo.index.add([new])

        for name, content in (files or {}).items():
            if content is None:
                repo.index.remove([name], working_tree=True)
                continue
            path = repo_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
            repo.index.add([name])

        actor = git.Actor(author.capitalize(), f"{author}@example.com")
        date = f"{EPOCH + day * DAY} +0000"
        kwargs = {}
        if parents is not None:
            kwargs["parent_commits"] = parents
        return repo.index.commit(
            message,
            author=actor,
            committer=actor,
            author_date=date,
            commit_date=date,
            **kwargs,
        )

    return _commit
