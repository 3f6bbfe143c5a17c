"""File-based persistence of repository snapshots."""

import json
import os
import re
import time
from pathlib import Path

import aiofiles
import structlog

from .base import SnapshotStorageError
from .statistics import RepositoryStatistics

logger = structlog.get_logger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


async def atomic_write(path: Path, content: str) -> None:
    """Write content to a file atomically (temp file, fsync, rename).

    If the process dies during the write the previous snapshot stays intact.

    Raises:
        SnapshotStorageError: On I/O errors (disk full, permissions, etc.)
    """
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(content)
            await f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError as e:
        if temp_path.exists():
            os.unlink(temp_path)
        raise SnapshotStorageError(f"Cannot write snapshot {path}: {e}") from e


class SnapshotStore:
    """Stores one JSON snapshot per repository name in a directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory).expanduser()

    def path_for(self, name: str) -> Path:
        safe_name = _UNSAFE_NAME_CHARS.sub("_", name).strip("._") or "repository"
        return self.directory / f"{safe_name}.json"

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    async def load(self, name: str) -> RepositoryStatistics:
        """Load a snapshot; missing or corrupted files yield an empty snapshot.

        Corrupted files are moved aside so the next save starts clean.

        Raises:
            SnapshotStorageError: If the file exists but cannot be read.
        """
        path = self.path_for(name)
        if not path.exists():
            logger.info("snapshot_not_found", name=name, path=str(path))
            return RepositoryStatistics()

        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            logger.error("io_error_reading_snapshot", path=str(path), error=str(e))
            raise SnapshotStorageError(f"Cannot read snapshot {path}: {e}") from e

        try:
            data = json.loads(content)
            if not isinstance(data, dict):
                raise ValueError(
                    f"Expected a JSON object, got {type(data).__name__}"
                )
            statistics = RepositoryStatistics.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            backup_path = path.with_suffix(f".corrupted.{int(time.time())}")
            os.rename(path, backup_path)
            logger.error(
                "corrupted_snapshot_backed_up",
                file=str(path),
                backup=str(backup_path),
                error=str(e),
            )
            return RepositoryStatistics()

        logger.debug(
            "snapshot_loaded",
            name=name,
            files=len(statistics),
            latest_commit_id=statistics.latest_commit_id,
        )
        return statistics

    async def save(self, name: str, statistics: RepositoryStatistics) -> Path:
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SnapshotStorageError(f"Cannot create {path.parent}: {e}") from e

        await atomic_write(path, json.dumps(statistics.to_dict(), indent=2))
        logger.debug("snapshot_saved", name=name, path=str(path))
        return path

    def delete(self, name: str) -> bool:
        path = self.path_for(name)
        if not path.exists():
            return False
        path.unlink()
        return True
