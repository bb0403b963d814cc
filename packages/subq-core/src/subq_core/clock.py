"""Timestamp helpers for log entries."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from subq_schemas.primitives import Timestamp

type Clock = Callable[[], Timestamp]


def now_timestamp() -> Timestamp:
    """Return the current UTC time as an ISO-8601 string with a Z suffix."""
    value = datetime.now(tz=UTC).isoformat()
    return value.replace("+00:00", "Z")
