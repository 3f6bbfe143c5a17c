"""Tests for GitPythonCollector."""

import asyncio
import os
import sys
import threading
from datetime import UTC, datetime

import git
import pytest

from scm_forensics.git import (
    GitPythonCollector,
    author_identity,
    count_blob_lines,
    count_changed_lines,
)
from scm_forensics.miner import (
    CollectedCommits,
    GitReaderError,
    RepositoryNotFoundError,
)


def lines(count: int, prefix: str = "line") -> str:
    return "".join(f"{prefix} {index}\n" for index in range(count))


@pytest.fixture
def three_commit_repo(temp_repo, commit_files):
    """file.txt touched by bob, alice, bob (+20, +10, +5/-1)."""
    c1 = commit_files({"file.txt": lines(20)}, author="bob", day=1)
    c2 = commit_files({"file.txt": lines(20) + lines(10, "more")}, author="alice", day=2)
    content = "changed\n" + "".join(lines(20).splitlines(True)[1:])
    content += lines(10, "more") + lines(4, "tail")
    c3 = commit_files({"file.txt": content}, author="bob", day=3)
    return temp_repo[0], [c1, c2, c3]


class TestCountChangedLines:
    """Tests for patch line counting."""

    def test_empty_patch(self) -> None:
        assert count_changed_lines(None) == (0, 0)
        assert count_changed_lines(b"") == (0, 0)

    def test_counts_added_and_deleted(self) -> None:
        patch = b"@@ -1,2 +1,3 @@\n-old\n+new\n+extra\n context\n"
        assert count_changed_lines(patch) == (2, 1)

    def test_accepts_text(self) -> None:
        assert count_changed_lines("@@ -0,0 +1 @@\n+only\n") == (1, 0)

    def test_binary_patch(self) -> None:
        assert count_changed_lines(b"Binary files a/x.bin and b/x.bin differ\n") == (0, 0)

    def test_no_newline_marker_is_ignored(self) -> None:
        patch = b"@@ -1 +1 @@\n-a\n\\ No newline at end of file\n+b\n"
        assert count_changed_lines(patch) == (1, 1)


class TestCountBlobLines:
    """Tests for line counting of new files."""

    def test_counts_lines(self) -> None:
        assert count_blob_lines(b"a\nb\n") == 2

    def test_missing_trailing_newline(self) -> None:
        assert count_blob_lines(b"a\nb") == 2

    def test_empty_and_binary(self) -> None:
        assert count_blob_lines(b"") == 0
        assert count_blob_lines(b"\x00\x01\n") == 0


class TestAuthorIdentity:
    """Tests for author normalization."""

    def test_prefers_lowercase_email(self) -> None:
        assert author_identity(git.Actor("Bob", " Bob@Example.COM ")) == "bob@example.com"

    def test_falls_back_to_name(self) -> None:
        assert author_identity(git.Actor("Bob", "")) == "Bob"

    def test_unknown(self) -> None:
        assert author_identity(None) == "unknown"
        assert author_identity(git.Actor(None, None)) == "unknown"


class TestGitPythonCollector:
    """Tests for GitPythonCollector."""

    def test_init_with_valid_repo(self, temp_repo) -> None:
        repo_path, _ = temp_repo
        collector = GitPythonCollector(repo_path)
        assert collector.get_repo_root() == str(repo_path.resolve())

    def test_init_with_invalid_repo(self, tmp_path) -> None:
        with pytest.raises(RepositoryNotFoundError):
            GitPythonCollector(tmp_path)

    def test_init_with_nonexistent_path(self, tmp_path) -> None:
        with pytest.raises(RepositoryNotFoundError):
            GitPythonCollector(tmp_path / "nonexistent")

    async def test_empty_repo(self, temp_repo) -> None:
        repo_path, _ = temp_repo
        collected = await GitPythonCollector(repo_path).collect()

        assert collected.records == []
        assert collected.latest_commit_id is None
        assert "has no commits yet" in collected.log.info_messages[0]

    async def test_collects_newest_first(self, three_commit_repo) -> None:
        repo_path, (c1, c2, c3) = three_commit_repo

        collected = await GitPythonCollector(repo_path).collect()

        assert [r.id for r in collected.records] == [c3.hexsha, c2.hexsha, c1.hexsha]
        assert [(r.added_lines, r.deleted_lines) for r in collected.records] == [
            (5, 1),
            (10, 0),
            (20, 0),
        ]
        assert [r.author for r in collected.records] == [
            "bob@example.com",
            "alice@example.com",
            "bob@example.com",
        ]
        assert {r.path for r in collected.records} == {"file.txt"}
        assert collected.latest_commit_id == c3.hexsha
        assert collected.records[-1].timestamp == datetime(2024, 1, 2, tzinfo=UTC)

    async def test_collects_only_newer_commits(self, three_commit_repo) -> None:
        repo_path, (c1, c2, c3) = three_commit_repo

        collected = await GitPythonCollector(repo_path).collect(c1.hexsha)

        assert [r.id for r in collected.records] == [c3.hexsha, c2.hexsha]

    async def test_up_to_date(self, three_commit_repo) -> None:
        repo_path, (_, _, c3) = three_commit_repo

        collected = await GitPythonCollector(repo_path).collect(c3.hexsha)

        assert collected.records == []
        assert collected.latest_commit_id is None

    async def test_unknown_since_commit(self, three_commit_repo) -> None:
        repo_path, _ = three_commit_repo

        with pytest.raises(GitReaderError, match="not found"):
            await GitPythonCollector(repo_path).collect("f" * 40)

    async def test_multiple_files_per_commit(self, temp_repo, commit_files) -> None:
        repo_path, _ = temp_repo
        commit = commit_files({"a.py": lines(3), "docs/b.md": lines(2)})

        collected = await GitPythonCollector(repo_path).collect()

        assert sorted((r.path, r.added_lines) for r in collected.records) == [
            ("a.py", 3),
            ("docs/b.md", 2),
        ]
        assert {r.id for r in collected.records} == {commit.hexsha}

    async def test_deletion(self, temp_repo, commit_files) -> None:
        repo_path, _ = temp_repo
        commit_files({"keep.txt": lines(1), "gone.txt": lines(6)}, day=1)
        deletion = commit_files({"gone.txt": None}, day=2)

        collected = await GitPythonCollector(repo_path).collect()

        newest = [r for r in collected.records if r.id == deletion.hexsha]
        assert len(newest) == 1
        assert newest[0].path == "gone.txt"
        assert newest[0].is_delete
        assert newest[0].added_lines == 0
        assert newest[0].deleted_lines == 6

    async def test_rename(self, temp_repo, commit_files) -> None:
        repo_path, _ = temp_repo
        commit_files({"old.txt": lines(12)}, day=1)
        rename = commit_files(renames={"old.txt": "new.txt"}, day=2)

        collected = await GitPythonCollector(repo_path).collect()

        renamed = [r for r in collected.records if r.id == rename.hexsha]
        assert len(renamed) == 1
        assert renamed[0].path == "new.txt"
        assert renamed[0].old_path == "old.txt"
        assert renamed[0].is_rename
        assert (renamed[0].added_lines, renamed[0].deleted_lines) == (0, 0)

    async def test_rename_detection_disabled(self, temp_repo, commit_files) -> None:
        repo_path, _ = temp_repo
        commit_files({"old.txt": lines(12)}, day=1)
        commit_files(renames={"old.txt": "new.txt"}, day=2)

        collector = GitPythonCollector(repo_path, detect_renames=False)
        collected = await collector.collect()

        newest = collected.records[:2]
        assert not any(r.is_rename for r in newest)
        assert {(r.path, r.is_delete) for r in newest} == {
            ("old.txt", True),
            ("new.txt", False),
        }

    @pytest.mark.skipif(sys.platform == "win32", reason="requires symlinks")
    async def test_type_change_is_one_record(self, temp_repo, commit_files) -> None:
        repo_path, repo = temp_repo
        commit_files({"link": lines(3), "target.txt": lines(1)}, day=1)
        (repo_path / "link").unlink()
        os.symlink("target.txt", repo_path / "link")
        repo.index.add(["link"])
        change = commit_files({"target.txt": lines(2)}, day=2)

        collected = await GitPythonCollector(repo_path).collect()

        newest = [r for r in collected.records if r.id == change.hexsha]
        changes = sorted(
            (r.path, r.is_delete, r.added_lines, r.deleted_lines) for r in newest
        )
        assert changes == [
            ("link", False, 1, 3),
            ("target.txt", False, 1, 0),
        ]

    async def test_binary_file_counts_no_lines(self, temp_repo, commit_files) -> None:
        repo_path, repo = temp_repo
        (repo_path / "image.bin").write_bytes(b"\x00\x01\x02\x03")
        repo.index.add(["image.bin"])
        repo.index.commit("Add binary file")

        collected = await GitPythonCollector(repo_path).collect()

        assert len(collected.records) == 1
        assert collected.records[0].path == "image.bin"
        assert collected.records[0].added_lines == 0

    async def test_merge_commits_are_skipped(self, temp_repo, commit_files) -> None:
        repo_path, _ = temp_repo
        c0 = commit_files({"base.txt": lines(2)}, day=1)
        c1 = commit_files({"main.txt": lines(3)}, day=2)
        merge = commit_files(day=3, message="Merge", parents=[c1, c0])

        collected = await GitPythonCollector(repo_path).collect()

        assert {r.id for r in collected.records} == {c0.hexsha, c1.hexsha}
        assert collected.latest_commit_id == merge.hexsha
        assert "Skipped 1 merge commits" in collected.log.info_messages

    async def test_merge_commits_included(self, temp_repo, commit_files) -> None:
        repo_path, _ = temp_repo
        c0 = commit_files({"base.txt": lines(2)}, day=1)
        c1 = commit_files({"main.txt": lines(3)}, day=2)
        merge = commit_files({"main.txt": lines(4)}, day=3, parents=[c1, c0])

        collector = GitPythonCollector(repo_path, include_merges=True)
        collected = await collector.collect()

        assert collected.records[0].id == merge.hexsha
        assert collected.records[0].added_lines == 1

    async def test_git_failure_is_reader_error(self, three_commit_repo, monkeypatch) -> None:
        repo_path, _ = three_commit_repo
        collector = GitPythonCollector(repo_path)

        def fail(*args, **kwargs):
            raise git.GitCommandError("log", 128, b"fatal: bad object")

        monkeypatch.setattr(collector.repo, "iter_commits", fail)

        with pytest.raises(GitReaderError, match="Git command failed"):
            await collector.collect()

    async def test_os_error_is_reader_error(self, three_commit_repo, monkeypatch) -> None:
        repo_path, _ = three_commit_repo
        collector = GitPythonCollector(repo_path)

        def fail(*args, **kwargs):
            raise PermissionError("index locked")

        monkeypatch.setattr(collector.repo, "iter_commits", fail)

        with pytest.raises(GitReaderError, match="Cannot read repository"):
            await collector.collect()

    async def test_cancellation_stops_walk(self, three_commit_repo, monkeypatch) -> None:
        repo_path, _ = three_commit_repo
        collector = GitPythonCollector(repo_path)
        started = threading.Event()
        finished = threading.Event()
        observed: list[bool] = []

        def slow(since_commit_id, cancelled):
            started.set()
            observed.append(cancelled.wait(5))
            finished.set()
            return CollectedCommits()

        monkeypatch.setattr(collector, "_collect_sync", slow)

        task = asyncio.create_task(collector.collect())
        assert await asyncio.to_thread(started.wait, 5)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert await asyncio.to_thread(finished.wait, 5)
        assert observed == [True]
