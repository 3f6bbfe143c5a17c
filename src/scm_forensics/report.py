"""Text rendering of repository statistics: details table and build summary."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from scm_forensics.miner.statistics import FileStatistics, RepositoryStatistics

FILE_NAME = "File Name"
AUTHORS = "Authors"
COMMITS = "Commits"
LAST_COMMIT = "Last Commit"
ADDED = "Added"
LOC = "LOC"
CHURN = "Churn"

HEADERS = (FILE_NAME, AUTHORS, COMMITS, LAST_COMMIT, ADDED, LOC, CHURN)

SHORT_ID_LENGTH = 7


def abbreviate_commit_id(commit_id: str) -> str:
    """Short form of a commit id as shown in summaries; blank ids pass through."""
    if not commit_id or not commit_id.strip():
        return commit_id
    return commit_id[:SHORT_ID_LENGTH]


@dataclass(frozen=True)
class FileRow:
    """One row of the details table."""

    file_name: str
    authors: int
    commits: int
    last_commit: datetime | None
    added: int
    loc: int
    churn: int

    @classmethod
    def from_statistics(cls, statistics: FileStatistics) -> "FileRow":
        return cls(
            file_name=statistics.file_name,
            authors=statistics.author_count,
            commits=statistics.commit_count,
            last_commit=statistics.last_commit_time,
            added=statistics.added_lines,
            loc=statistics.lines_of_code,
            churn=statistics.churn,
        )

    def cells(self) -> tuple[str, ...]:
        last_commit = self.last_commit.strftime("%Y-%m-%d") if self.last_commit else "-"
        return (
            self.file_name,
            str(self.authors),
            str(self.commits),
            last_commit,
            str(self.added),
            str(self.loc),
            str(self.churn),
        )


_SORT_KEYS: dict[str, Callable[[FileRow], Any]] = {
    FILE_NAME: lambda row: row.file_name,
    AUTHORS: lambda row: row.authors,
    COMMITS: lambda row: row.commits,
    LAST_COMMIT: lambda row: row.last_commit.timestamp() if row.last_commit else 0.0,
    ADDED: lambda row: row.added,
    LOC: lambda row: row.loc,
    CHURN: lambda row: row.churn,
}


def table_rows(
    statistics: RepositoryStatistics,
    sort_by: str = FILE_NAME,
    descending: bool = False,
) -> list[FileRow]:
    """Rows for all current (non-deleted) files.

    Raises:
        ValueError: If ``sort_by`` is not one of ``HEADERS``.
    """
    if sort_by not in _SORT_KEYS:
        raise ValueError(f"Unknown column {sort_by!r}, expected one of {HEADERS}")

    rows = [FileRow.from_statistics(stats) for stats in statistics.current_files()]
    # Ties are broken by file name so the output is deterministic.
    rows.sort(key=lambda row: row.file_name)
    rows.sort(key=_SORT_KEYS[sort_by], reverse=descending)
    return rows


def format_table(rows: list[FileRow]) -> str:
    cells = [HEADERS, *(row.cells() for row in rows)]
    widths = [max(len(line[i]) for line in cells) for i in range(len(HEADERS))]
    lines = []
    for index, line in enumerate(cells):
        lines.append(
            "  ".join(
                cell.ljust(width) if i == 0 else cell.rjust(width)
                for i, (cell, width) in enumerate(zip(line, widths))
            ).rstrip()
        )
        if index == 0:
            lines.append("  ".join("-" * width for width in widths))
    return "\n".join(lines)


def summary_lines(statistics: RepositoryStatistics) -> list[str]:
    """Build summary block with aggregate counts of a snapshot."""
    lines = [
        f"{len(statistics.current_files())} repository files",
        f"total lines of code: {statistics.total_lines_of_code}",
        f"total churn: {statistics.total_churn}",
    ]

    latest = statistics.latest_statistics
    if latest is not None and statistics.initial_recording:
        lines.append(f"Initial recording of {latest.commit_count} commits")
    if latest is not None:
        lines.extend([
            f"New added lines: {latest.added_lines}",
            f"New deleted lines: {latest.deleted_lines}",
            f"New commits: {latest.commit_count}",
            f"from {latest.author_count} authors",
            f"in {latest.files_count} files",
        ])

    if statistics.latest_commit_id:
        lines.append(f"Latest commit: {abbreviate_commit_id(statistics.latest_commit_id)}")
    return lines
