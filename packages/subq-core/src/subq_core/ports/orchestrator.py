"""Protocol definitions and helpers for queue orchestration."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from subq_schemas.base import BaseSchema
from subq_schemas.events import JobEvent, QueueEvent
from subq_schemas.jobs import JobRecord
from subq_schemas.logs import LogEntry
from subq_schemas.primitives import JobId, JobStatus, JsonValue, LogLevel, Timestamp
from subq_schemas.responses import ErrorDetails, ErrorResponse


@runtime_checkable
class LogSinkProtocol(Protocol):
    """Protocol for emitting structured log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Emit a log entry."""
        raise NotImplementedError


class QueueErrorCode(StrEnum):
    """Categorized error codes for queue control failures."""

    JOB_NOT_FOUND = "job_not_found"
    INVALID_STATE = "invalid_state"
    INVALID_INDEX = "invalid_index"


class QueueErrorDetails(BaseSchema):
    """Detailed queue error context."""

    job_id: JobId | None = Field(None, description="Job associated with error")
    status: JobStatus | None = Field(None, description="Job status at the time")
    index: int | None = Field(None, description="Queue index if applicable")
    reason: str | None = Field(None, description="Additional error context")


class QueueErrorInfo(BaseSchema):
    """Structured queue error data."""

    code: QueueErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: QueueErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert queue error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.job_id is not None:
            details = ErrorDetails(
                field="job_id",
                provided=str(self.details.job_id),
                valid_options=None,
            )
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=str(code_value), message=self.message, details=details
        )


class QueueError(Exception):
    """Queue control error with structured details."""

    def __init__(self, info: QueueErrorInfo) -> None:
        """Initialize the queue error.

        Args:
            info: Structured queue error information.
        """
        super().__init__(info.message)
        self.info = info


def build_queue_log(
    timestamp: Timestamp,
    event: QueueEvent,
    message: str,
    *,
    level: LogLevel = LogLevel.INFO,
    data: dict[str, JsonValue] | None = None,
) -> LogEntry:
    """Build a log entry for queue-level activity.

    Args:
        timestamp: ISO-8601 timestamp.
        event: Queue event name.
        message: Human readable message.
        level: Log level.
        data: Optional structured payload.

    Returns:
        LogEntry: Structured queue log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=level,
        event=event,
        message=message,
        job_id=None,
        file=None,
        data=data,
    )


def build_job_log(
    timestamp: Timestamp,
    job: JobRecord,
    event: JobEvent,
    message: str,
    *,
    level: LogLevel = LogLevel.INFO,
    data: dict[str, JsonValue] | None = None,
) -> LogEntry:
    """Build a log entry tied to a single job.

    Args:
        timestamp: ISO-8601 timestamp.
        job: Job the entry refers to.
        event: Job event name.
        message: Human readable message.
        level: Log level.
        data: Optional structured payload.

    Returns:
        LogEntry: Structured job log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=level,
        event=event,
        message=message,
        job_id=job.id,
        file=job.name,
        data=data,
    )
