"""Protocol definitions and errors for video tooling and file cleanup."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from subq_schemas.base import BaseSchema
from subq_schemas.responses import ErrorDetails, ErrorResponse
from subq_schemas.subtitles import SubtitleTrack


@runtime_checkable
class MediaToolchainProtocol(Protocol):
    """Protocol for inspecting, extracting from and muxing into videos."""

    async def list_subtitle_tracks(self, video_path: str) -> list[SubtitleTrack]:
        """List the subtitle streams of a video."""
        raise NotImplementedError

    async def extract_subtitle_track(
        self, video_path: str, track_index: int, output_path: str
    ) -> None:
        """Write one subtitle stream of a video to output_path."""
        raise NotImplementedError

    async def mux_subtitle_to_video(
        self,
        video_path: str,
        subtitle_path: str,
        output_path: str,
        language: str | None = None,
        title: str | None = None,
    ) -> None:
        """Write a copy of the video with the subtitle added as default track."""
        raise NotImplementedError


@runtime_checkable
class FileCleanerProtocol(Protocol):
    """Protocol for deleting intermediate files."""

    async def delete_files(self, paths: list[str]) -> list[str]:
        """Delete files and return the paths that were removed."""
        raise NotImplementedError


class MediaErrorCode(StrEnum):
    """Categorized error codes for media tooling failures."""

    TOOL_MISSING = "tool_missing"
    COMMAND_FAILED = "command_failed"
    PARSE_FAILED = "parse_failed"
    CLEANUP_FAILED = "cleanup_failed"


class MediaErrorDetails(BaseSchema):
    """Detailed media error context."""

    tool: str | None = Field(None, description="External tool involved")
    path: str | None = Field(None, description="File being processed")
    exit_code: int | None = Field(None, description="Process exit code")
    failed_paths: list[str] | None = Field(
        None, description="Paths that could not be processed"
    )
    reason: str | None = Field(None, description="Additional error context")


class MediaErrorInfo(BaseSchema):
    """Structured media error data."""

    code: MediaErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: MediaErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert media error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.path is not None:
            details = ErrorDetails(
                field="path", provided=self.details.path, valid_options=None
            )
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=str(code_value), message=self.message, details=details
        )


class MediaError(Exception):
    """Media tooling error with structured details."""

    def __init__(self, info: MediaErrorInfo) -> None:
        """Initialize the media error.

        Args:
            info: Structured media error information.
        """
        super().__init__(info.message)
        self.info = info
