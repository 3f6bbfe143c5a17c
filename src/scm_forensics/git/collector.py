"""GitPython-based implementation of CommitCollector."""

import asyncio
import dataclasses
import threading
from pathlib import Path

import git
import structlog
from git.exc import BadName, BadObject

from scm_forensics.miner.base import (
    CollectedCommits,
    CommitCollector,
    CommitRecord,
    GitReaderError,
    RepositoryNotFoundError,
)
from scm_forensics.miner.log import FilteredLog
from scm_forensics.utils.datetime import from_git_timestamp

logger = structlog.get_logger(__name__)


def count_changed_lines(patch: bytes | str | None) -> tuple[int, int]:
    """Count added and deleted lines of a single-file patch body.

    GitPython strips the ``---``/``+++`` header, so every line starting with
    ``+`` or ``-`` is a content line. Binary patches count as zero.
    """
    if not patch:
        return 0, 0
    if isinstance(patch, str):
        patch = patch.encode("utf-8", errors="replace")

    added = deleted = 0
    for line in patch.splitlines():
        if line.startswith(b"+"):
            added += 1
        elif line.startswith(b"-"):
            deleted += 1
    return added, deleted


def count_blob_lines(data: bytes) -> int:
    """Number of lines of a new file, as ``git diff --numstat`` reports it."""
    if not data or b"\x00" in data[:8192]:
        return 0
    return data.count(b"\n") + (0 if data.endswith(b"\n") else 1)


def author_identity(actor: git.Actor | None) -> str:
    """Normalize an author to a stable identity: e-mail if present, else name."""
    if actor is None:
        return "unknown"
    email = (actor.email or "").strip().lower()
    if email:
        return email
    return (actor.name or "").strip() or "unknown"


class GitPythonCollector(CommitCollector):
    """Walks a Git repository and reports per-file line deltas of each commit."""

    def __init__(
        self,
        repo_path: str | Path,
        include_merges: bool = False,
        detect_renames: bool = True,
    ) -> None:
        try:
            self.repo = git.Repo(repo_path)
            self.repo_path = Path(repo_path).resolve()
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise RepositoryNotFoundError(
                f"Not a valid git repository: {repo_path}"
            ) from e
        self.include_merges = include_merges
        self.detect_renames = detect_renames

    def get_repo_root(self) -> str:
        return str(self.repo_path)

    async def collect(self, since_commit_id: str = "") -> CollectedCommits:
        cancelled = threading.Event()
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, self._collect_sync, since_commit_id, cancelled
            )
        except asyncio.CancelledError:
            cancelled.set()
            raise

    def _collect_sync(
        self, since_commit_id: str, cancelled: threading.Event
    ) -> CollectedCommits:
        log = FilteredLog()
        try:
            try:
                self.repo.head.commit
            except ValueError:
                log.log_info("Repository '%s' has no commits yet", self.repo_path)
                return CollectedCommits(log=log)

            revision = "HEAD"
            if since_commit_id:
                self._resolve(since_commit_id)
                revision = f"{since_commit_id}..HEAD"

            records: list[CommitRecord] = []
            head_id: str | None = None
            skipped_merges = 0
            for commit in self.repo.iter_commits(revision):
                if cancelled.is_set():
                    logger.info("collection_cancelled", repo_path=str(self.repo_path))
                    return CollectedCommits(log=log)

                if head_id is None:
                    head_id = commit.hexsha
                if len(commit.parents) > 1 and not self.include_merges:
                    skipped_merges += 1
                    continue
                records.extend(self._records_for(commit))

            if skipped_merges:
                log.log_info("Skipped %d merge commits", skipped_merges)
            return CollectedCommits(records=records, log=log, head_id=head_id)

        except git.GitCommandError as e:
            raise GitReaderError(f"Git command failed: {e}") from e
        except OSError as e:
            raise GitReaderError(f"Cannot read repository {self.repo_path}: {e}") from e

    def _resolve(self, commit_id: str) -> git.Commit:
        try:
            return self.repo.commit(commit_id)
        except (BadName, BadObject, ValueError) as e:
            raise GitReaderError(
                f"Commit {commit_id} not found in {self.repo_path}"
            ) from e

    def _records_for(self, commit: git.Commit) -> list[CommitRecord]:
        author = author_identity(commit.author)
        timestamp = from_git_timestamp(commit.committed_date)

        if not commit.parents:
            return [
                CommitRecord(
                    id=commit.hexsha,
                    timestamp=timestamp,
                    author=author,
                    path=blob.path,
                    added_lines=count_blob_lines(blob.data_stream.read()),
                )
                for blob in commit.tree.traverse()
                if blob.type == "blob"
            ]

        # A type change (file <-> symlink) is reported as a deletion and an
        # addition of the same path; one record per path and commit.
        records: dict[str, CommitRecord] = {}
        diffs = commit.parents[0].diff(commit, create_patch=True, M=self.detect_renames)
        for diff in diffs:
            added, deleted = count_changed_lines(diff.diff)
            if diff.deleted_file:
                record = CommitRecord(
                    id=commit.hexsha,
                    timestamp=timestamp,
                    author=author,
                    path=diff.a_path or diff.b_path,
                    deleted_lines=deleted,
                    is_delete=True,
                )
            else:
                old_path = None
                path = diff.b_path or diff.a_path
                if diff.renamed_file:
                    old_path = diff.rename_from
                    path = diff.rename_to or path
                record = CommitRecord(
                    id=commit.hexsha,
                    timestamp=timestamp,
                    author=author,
                    path=path,
                    added_lines=added,
                    deleted_lines=deleted,
                    old_path=old_path,
                )

            known = records.get(record.path)
            if known is not None:
                record = dataclasses.replace(
                    known,
                    added_lines=known.added_lines + record.added_lines,
                    deleted_lines=known.deleted_lines + record.deleted_lines,
                    is_delete=known.is_delete and record.is_delete,
                    old_path=known.old_path or record.old_path,
                )
            records[record.path] = record
        return list(records.values())
