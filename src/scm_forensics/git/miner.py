"""Mines a Git repository and creates statistics for all available files."""

import time

import structlog

from scm_forensics.miner.base import CommitCollector, GitReaderError, RepositoryMiner
from scm_forensics.miner.commits import log_commits
from scm_forensics.miner.log import FilteredLog
from scm_forensics.miner.statistics import RepositoryStatistics

logger = structlog.get_logger(__name__)


class GitRepositoryMiner(RepositoryMiner):
    """Incrementally merges new Git commits into a previous snapshot."""

    def __init__(self, collector: CommitCollector) -> None:
        self.collector = collector

    async def mine(
        self, previous: RepositoryStatistics, log: FilteredLog
    ) -> RepositoryStatistics:
        try:
            start = time.monotonic_ns()
            log.log_info(
                "Analyzing the commit log of the Git repository '%s'",
                self.collector.get_repo_root(),
            )
            collected = await self.collector.collect(previous.latest_commit_id)
            log.merge(collected.log)

            # Newest first, as reported by git log
            commits = collected.records
            elapsed_seconds = 1 + (time.monotonic_ns() - start) // 1_000_000_000
            log.log_info("-> Created report in %d seconds", elapsed_seconds)
            log_commits(commits, log)

            latest_commit_id = collected.latest_commit_id or previous.latest_commit_id
            current = RepositoryStatistics(latest_commit_id)
            current.add_all(previous)
            current.add_commits(reversed(commits))
            current.initial_recording = previous.is_empty() and bool(commits)

            logger.info(
                "repository_mined",
                repo_path=self.collector.get_repo_root(),
                new_records=len(commits),
                files=len(current),
                latest_commit_id=latest_commit_id,
            )
            return current

        except (GitReaderError, OSError) as exception:
            log.log_exception(
                exception,
                "Exception occurred while mining the Git repository using GitPython",
            )
            # Discards the previous snapshot; the next run starts from scratch.
            return RepositoryStatistics()
