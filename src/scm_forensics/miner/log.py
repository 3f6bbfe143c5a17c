"""Report log that keeps human-readable lines and forwards them to structlog."""

import traceback
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ERRORS = 20


class FilteredLog:
    """Collects info and error lines of a mining pass.

    The collected lines are part of the reporting contract (build consoles and
    automated checks match on them), so messages are kept verbatim. Error
    lines beyond ``max_errors`` are counted but not stored.
    """

    def __init__(
        self,
        title: str = "Errors while mining the repository:",
        max_errors: int = DEFAULT_MAX_ERRORS,
    ) -> None:
        self.title = title
        self.max_errors = max_errors
        self._info: list[str] = []
        self._errors: list[str] = []
        self._error_count = 0

    @staticmethod
    def _format(fmt: str, args: tuple[Any, ...]) -> str:
        return fmt % args if args else fmt

    def log_info(self, fmt: str, *args: Any) -> None:
        message = self._format(fmt, args)
        self._info.append(message)
        logger.info("miner_info", message=message)

    def log_error(self, fmt: str, *args: Any) -> None:
        message = self._format(fmt, args)
        logger.error("miner_error", message=message)
        self._add_error(message)

    def log_exception(self, exception: BaseException, fmt: str, *args: Any) -> None:
        message = self._format(fmt, args)
        logger.error(
            "miner_exception",
            message=message,
            error=str(exception),
            error_type=type(exception).__name__,
        )
        self._add_error(message)
        details = traceback.format_exception(
            type(exception), exception, exception.__traceback__
        )
        for line in "".join(details).splitlines():
            self._add_error(line)

    def _add_error(self, line: str) -> None:
        if self._error_count < self.max_errors:
            self._errors.append(line)
        self._error_count += 1

    def merge(self, other: "FilteredLog") -> None:
        """Append the lines of another log, e.g. one produced by a collector."""
        self._info.extend(other.info_messages)
        for line in other._errors:
            self._add_error(line)
        self._error_count += other._error_count - len(other._errors)

    @property
    def info_messages(self) -> list[str]:
        return list(self._info)

    @property
    def error_messages(self) -> list[str]:
        if not self._errors:
            return []
        messages = [self.title, *self._errors]
        skipped = self._error_count - len(self._errors)
        if skipped > 0:
            messages.append(f"  ... skipped logging of {skipped} additional errors ...")
        return messages

    @property
    def error_count(self) -> int:
        return self._error_count

    def has_errors(self) -> bool:
        return self._error_count > 0
