"""Queue job records and queue snapshots."""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from subq_schemas.base import BaseSchema
from subq_schemas.primitives import JobId, JobKind, JobStatus
from subq_schemas.subtitles import (
    DetectedLanguage,
    SubtitleEntry,
    SubtitleFile,
    SubtitleTrack,
)


class FileEntry(BaseSchema):
    """File accepted into the queue before it becomes a job."""

    name: str = Field(..., min_length=1, description="Display name")
    path: str = Field(..., min_length=1, description="Absolute source path")
    kind: JobKind = Field(..., description="Subtitle or video source")

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, value: object) -> JobKind:
        if isinstance(value, JobKind):
            return value
        if isinstance(value, str):
            return JobKind(value)
        return value  # type: ignore[return-value]


class JobRecord(BaseSchema):
    """State of one file moving through the translation pipeline."""

    id: JobId = Field(..., description="Stable job identifier")
    name: str = Field(..., min_length=1, description="Display name")
    path: str = Field(..., min_length=1, description="Absolute source path")
    kind: JobKind = Field(..., description="Subtitle or video source")
    status: JobStatus = Field(JobStatus.PENDING, description="Lifecycle state")
    progress: float = Field(0.0, ge=0, le=100, description="Translate progress")
    total_lines: int = Field(0, ge=0, description="Lines in the loaded subtitle")
    translated_lines: int = Field(0, ge=0, description="Lines translated so far")
    error: str | None = Field(None, description="Last fatal error message")
    selected_track_index: int | None = Field(
        None, ge=0, description="Subtitle stream chosen for extraction"
    )
    subtitle_tracks: list[SubtitleTrack] | None = Field(
        None, description="Subtitle streams discovered in the video"
    )
    is_loading_tracks: bool = Field(
        False, description="Whether track discovery is in flight"
    )
    extracted_subtitle_path: str | None = Field(
        None, description="Subtitle extracted from the video"
    )
    original_subtitle: SubtitleFile | None = Field(
        None, description="Loaded source subtitle"
    )
    translated_entries: list[SubtitleEntry] | None = Field(
        None, description="Entries returned by the backend"
    )
    detected_language: DetectedLanguage | None = Field(
        None, description="Language reported by detection"
    )
    output_subtitle_path: str | None = Field(
        None, description="Written translated subtitle"
    )
    output_video_path: str | None = Field(None, description="Muxed output video")

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, value: object) -> JobKind:
        if isinstance(value, JobKind):
            return value
        if isinstance(value, str):
            return JobKind(value)
        return value  # type: ignore[return-value]

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> JobStatus:
        if isinstance(value, JobStatus):
            return value
        if isinstance(value, str):
            return JobStatus(value)
        return value  # type: ignore[return-value]

    @model_validator(mode="after")
    def validate_line_counts(self) -> JobRecord:
        """Ensure translated lines never exceed a known total.

        Returns:
            JobRecord: Validated job record.

        Raises:
            ValueError: If translated_lines exceeds a non-zero total_lines.
        """
        if self.total_lines and self.translated_lines > self.total_lines:
            raise ValueError("translated_lines must not exceed total_lines")
        return self

    @classmethod
    def from_entry(cls, job_id: JobId, entry: FileEntry) -> JobRecord:
        """Create a pending job for an accepted file.

        Returns:
            JobRecord: New pending job.
        """
        return cls(
            id=job_id,
            name=entry.name,
            path=entry.path,
            kind=JobKind(entry.kind),
            status=JobStatus.PENDING,
            is_loading_tracks=entry.kind == JobKind.VIDEO,
        )


class QueueSnapshot(BaseSchema):
    """Immutable view of the queue at one point in time."""

    jobs: list[JobRecord] = Field(
        default_factory=list, description="Jobs in queue order"
    )
    current_file_id: JobId | None = Field(
        None, description="Most recently started job"
    )
    is_translating: bool = Field(False, description="Whether the queue is running")
    is_paused: bool = Field(False, description="Whether new rounds are held back")
