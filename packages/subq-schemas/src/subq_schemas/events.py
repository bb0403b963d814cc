"""Event taxonomy and structured payloads for queue observability."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from subq_schemas.base import BaseSchema
from subq_schemas.primitives import JobId


class QueueEvent(StrEnum):
    """Event names for queue-level activity."""

    FILES_ADDED = "files_added"
    STARTED = "queue_started"
    PAUSED = "queue_paused"
    RESUMED = "queue_resumed"
    STOPPED = "queue_stopped"
    DRAINED = "queue_drained"
    CANCELLED_ALL = "queue_cancelled_all"
    TRACKS_APPLIED = "tracks_applied"
    CANCEL_SIGNAL_FAILED = "cancel_signal_failed"
    RUNNER_CRASHED = "runner_crashed"


class JobEvent(StrEnum):
    """Event names for per-file pipeline activity."""

    TRACKS_DISCOVERED = "tracks_discovered"
    TRACK_DISCOVERY_FAILED = "track_discovery_failed"
    EXTRACTION_STARTED = "extraction_started"
    LANGUAGE_DETECTED = "language_detected"
    LANGUAGE_DETECTION_FAILED = "language_detection_failed"
    TRANSLATION_STARTED = "translation_started"
    TRANSLATION_PARTIAL = "translation_partial"
    TRANSLATION_RETRY = "translation_retry"
    SAVED = "subtitle_saved"
    MUXED = "video_muxed"
    CLEANUP_FAILED = "cleanup_failed"
    COMPLETED = "job_completed"
    FAILED = "job_failed"
    CANCELLED = "job_cancelled"


class TranslationChannel(StrEnum):
    """Channels a translation backend publishes on."""

    PROGRESS = "translation:progress"
    ERROR = "translation:error"


class TranslationProgressEvent(BaseSchema):
    """Progress notification published while a file translates."""

    job_id: JobId = Field(..., description="Job the progress belongs to")
    progress: float = Field(..., description="Percent complete reported by backend")
    translated: int = Field(..., ge=0, description="Entries translated so far")
    total: int = Field(..., ge=0, description="Entries in the file")


class TranslationErrorEvent(BaseSchema):
    """Batch failure notification published while a file translates."""

    job_id: JobId = Field(..., description="Job the failure belongs to")
    error: str = Field(..., min_length=1, description="Backend error message")
    retry_count: int = Field(..., ge=0, description="Retries attempted so far")


class FilesAddedData(BaseSchema):
    """Payload for files added events."""

    count: int = Field(..., ge=0, description="Files appended to the queue")
    videos: int = Field(..., ge=0, description="Video files among them")


class QueueDrainedData(BaseSchema):
    """Payload for queue drained events."""

    completed: int = Field(..., ge=0, description="Jobs completed")
    errors: int = Field(..., ge=0, description="Jobs that failed")
    cancelled: int = Field(..., ge=0, description="Jobs cancelled")


class JobFailedData(BaseSchema):
    """Payload for job failure events."""

    stage: str = Field(..., min_length=1, description="Stage that failed")
    error: str = Field(..., min_length=1, description="Failure message")


class TranslationPartialData(BaseSchema):
    """Payload for partial translation events."""

    translated_entries: int = Field(..., ge=0, description="Entries translated")
    total_entries: int = Field(..., ge=0, description="Entries in the file")
    error_message: str | None = Field(None, description="Backend error if any")
