"""Datetime serialization for persisted snapshots.

Commit timestamps are stored as ISO 8601 strings in UTC. Older snapshots and
raw Git data may carry Unix timestamps instead, so both are accepted when
reading. Naive datetimes are treated as UTC.
"""

from datetime import UTC, datetime

__all__ = ["serialize_datetime", "deserialize_datetime", "from_git_timestamp"]


def serialize_datetime(dt: datetime) -> str:
    """Serialize a datetime to an ISO 8601 string with UTC timezone.

    Examples:
        >>> serialize_datetime(datetime(2024, 12, 14, 10, 30, tzinfo=UTC))
        '2024-12-14T10:30:00+00:00'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


def deserialize_datetime(value: str | float | int) -> datetime:
    """Deserialize a datetime from an ISO 8601 string or a Unix timestamp.

    Raises:
        ValueError: If value cannot be parsed as a datetime.
        TypeError: If value is not a str, int, or float.
    """
    if isinstance(value, bool):
        raise TypeError(f"Cannot deserialize datetime from bool: {value!r}")

    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value)
        except ValueError as e:
            raise ValueError(f"Cannot parse ISO datetime string: {value!r}") from e
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)

    if isinstance(value, (int, float)):
        return from_git_timestamp(value)

    raise TypeError(
        f"Cannot deserialize datetime from {type(value).__name__}: {value!r}. "
        f"Expected str (ISO 8601), int, or float (Unix timestamp)."
    )


def from_git_timestamp(seconds: float) -> datetime:
    """Convert seconds since the epoch (as reported by Git) to UTC."""
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Cannot parse Unix timestamp: {seconds!r}") from e
