"""Subtitle content, track and translation result schemas."""

from __future__ import annotations

from pydantic import ConfigDict, Field, field_validator, model_validator

from subq_schemas.base import BaseSchema
from subq_schemas.primitives import SubtitleFormat


class SubtitleEntry(BaseSchema):
    """Single cue of a subtitle file."""

    model_config = ConfigDict(str_strip_whitespace=False)

    index: int = Field(..., ge=0, description="Cue position within the file")
    start_time: str = Field(..., description="Cue start time as written in source")
    end_time: str = Field(..., description="Cue end time as written in source")
    text: str = Field(..., description="Cue text")
    style: str | None = Field(None, description="ASS/SSA style name")
    actor: str | None = Field(None, description="ASS/SSA actor name")
    margin_l: int | None = Field(None, description="ASS/SSA left margin")
    margin_r: int | None = Field(None, description="ASS/SSA right margin")
    margin_v: int | None = Field(None, description="ASS/SSA vertical margin")
    effect: str | None = Field(None, description="ASS/SSA effect")


class SubtitleFile(BaseSchema):
    """Parsed subtitle file handed between the subtitle store and backends."""

    model_config = ConfigDict(str_strip_whitespace=False)

    format: SubtitleFormat = Field(..., description="Subtitle container format")
    entries: list[SubtitleEntry] = Field(
        default_factory=list, description="Subtitle cues in file order"
    )
    header: str | None = Field(None, description="ASS/SSA script header")
    styles: str | None = Field(None, description="ASS/SSA style section")

    @field_validator("format", mode="before")
    @classmethod
    def _coerce_format(cls, value: object) -> SubtitleFormat:
        if isinstance(value, SubtitleFormat):
            return value
        if isinstance(value, str):
            return SubtitleFormat(value)
        return value  # type: ignore[return-value]


class SubtitleTrack(BaseSchema):
    """Subtitle stream discovered inside a video container."""

    index: int = Field(..., ge=0, description="Position among subtitle streams")
    stream_index: int | None = Field(
        None, ge=0, description="Absolute stream index in the container"
    )
    codec: str = Field(..., description="Codec name reported by ffprobe")
    language: str | None = Field(None, description="Language tag if present")
    title: str | None = Field(None, description="Stream title if present")


class DetectedLanguage(BaseSchema):
    """Language reported by the detection model."""

    code: str = Field(..., min_length=1, description="ISO 639-2 language code")
    name: str = Field(..., min_length=1, description="Language name")
    display_name: str = Field(..., min_length=1, description="Name shown to users")


class TranslationProgress(BaseSchema):
    """Summary of how much of a file the backend translated."""

    total_entries: int = Field(..., ge=0, description="Entries in the source file")
    translated_entries: int = Field(..., ge=0, description="Entries translated")
    last_translated_index: int = Field(
        -1, ge=-1, description="Index of the last translated entry, -1 if none"
    )
    is_partial: bool = Field(False, description="Whether some entries are missing")
    can_continue: bool = Field(
        False, description="Whether the backend could resume the remainder"
    )

    @model_validator(mode="after")
    def validate_counts(self) -> TranslationProgress:
        """Ensure translated entries never exceed the total.

        Returns:
            TranslationProgress: Validated progress summary.

        Raises:
            ValueError: If translated_entries exceeds total_entries.
        """
        if self.translated_entries > self.total_entries:
            raise ValueError("translated_entries must not exceed total_entries")
        return self


class SubtitleTranslationResult(BaseSchema):
    """Outcome of a full-file translation request."""

    file: SubtitleFile = Field(..., description="Translated subtitle file")
    progress: TranslationProgress = Field(..., description="Translation coverage")
    error_message: str | None = Field(
        None, description="Backend error that cut the translation short"
    )


class TranslationOptions(BaseSchema):
    """Per-request tuning forwarded to the translation backend."""

    batch_size: int = Field(..., ge=1, description="Entries per request")
    parallel_requests: int = Field(..., ge=1, description="Requests in flight")
    max_retries: int = Field(..., ge=0, description="Retries per failed batch")
    auto_continue: bool = Field(..., description="Resume partial translations")
    continue_on_error: bool = Field(..., description="Skip failed batches")
