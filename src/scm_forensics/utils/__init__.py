"""Shared utilities."""

from .datetime import deserialize_datetime, from_git_timestamp, serialize_datetime

__all__ = ["serialize_datetime", "deserialize_datetime", "from_git_timestamp"]
