"""Log entry schema for queue and job events."""

from __future__ import annotations

from pydantic import Field

from subq_schemas.base import BaseSchema
from subq_schemas.primitives import EventName, JobId, JsonValue, LogLevel, Timestamp


class LogEntry(BaseSchema):
    """Single structured log line, optionally tied to a file."""

    timestamp: Timestamp = Field(
        ..., description="ISO-8601 timestamp for the log entry"
    )
    level: LogLevel = Field(..., description="Log level")
    event: EventName = Field(..., description="Event name")
    message: str = Field(..., min_length=1, description="Log message")
    job_id: JobId | None = Field(None, description="Job the entry refers to")
    file: str | None = Field(None, description="Display name of the file")
    data: dict[str, JsonValue] | None = Field(None, description="Structured event data")
