"""Primitive types and enums shared across subq schemas."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import Field

ISO_8601_PATTERN = (
    r"^\d{4}-\d{2}-\d{2}T"
    r"\d{2}:\d{2}:\d{2}"
    r"(?:\.\d+)?"
    r"(?:Z|[+-]\d{2}:\d{2})$"
)
EVENT_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"

type JobId = UUID
type Timestamp = Annotated[str, Field(pattern=ISO_8601_PATTERN)]
type EventName = Annotated[str, Field(pattern=EVENT_NAME_PATTERN)]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]


class JobKind(StrEnum):
    """Kinds of files accepted by the queue."""

    SUBTITLE = "subtitle"
    VIDEO = "video"


class JobStatus(StrEnum):
    """Lifecycle states for a queued file."""

    PENDING = "pending"
    EXTRACTING = "extracting"
    DETECTING_LANGUAGE = "detecting_language"
    TRANSLATING = "translating"
    SAVING = "saving"
    MUXING = "muxing"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"


ACTIVE_JOB_STATUSES = frozenset({
    JobStatus.EXTRACTING,
    JobStatus.DETECTING_LANGUAGE,
    JobStatus.TRANSLATING,
    JobStatus.SAVING,
    JobStatus.MUXING,
})

TERMINAL_JOB_STATUSES = frozenset({
    JobStatus.COMPLETED,
    JobStatus.ERROR,
    JobStatus.CANCELLED,
})


class OutputMode(StrEnum):
    """Where translated subtitles end up."""

    SEPARATE = "separate"
    MUX = "mux"


class SubtitleFormat(StrEnum):
    """Subtitle container formats understood by the subtitle store."""

    SRT = "srt"
    ASS = "ass"
    SSA = "ssa"
    VTT = "vtt"
    UNKNOWN = "unknown"


class LogLevel(StrEnum):
    """Log severity levels."""

    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class LogSinkType(StrEnum):
    """Supported log sink types."""

    CONSOLE = "console"
    FILE = "file"
    MEMORY = "memory"
    NOOP = "noop"
