"""Configuration schemas for the translation queue."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator

from subq_schemas.base import BaseSchema
from subq_schemas.primitives import LogSinkType, OutputMode

DEFAULT_BASE_URL = "http://localhost:8045/v1"
DEFAULT_PROMPT = (
    "Translate the following subtitle lines to Brazilian Portuguese. "
    "Keep the same tone and style. Return only the translations, "
    "one per line, in the same order."
)


class HeaderConfig(BaseSchema):
    """Extra HTTP header sent with every backend request."""

    key: str = Field(..., min_length=1, description="Header name")
    value: str = Field("", description="Header value")


class EndpointConfig(BaseSchema):
    """OpenAI-compatible endpoint used for translation and detection."""

    base_url: str = Field(
        DEFAULT_BASE_URL, min_length=1, description="OpenAI-compatible base URL"
    )
    api_key_env: str | None = Field(
        None, min_length=1, description="Environment variable holding the API key"
    )
    model: str = Field("", description="Model picked from the endpoint listing")
    custom_model: str = Field("", description="Free-form model override")
    headers: list[HeaderConfig] = Field(
        default_factory=list, description="Extra request headers"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Ensure base URL uses http/https with a host.

        Args:
            value: Raw base URL string.

        Returns:
            str: Validated base URL.

        Raises:
            ValueError: If the URL is missing scheme/host.
        """
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "base_url must be an http/https URL with host "
                "(for localhost include http://)"
            )
        return value

    @property
    def effective_model(self) -> str:
        """Model sent to the backend, preferring the custom override."""
        return self.custom_model or self.model

    def header_map(self) -> dict[str, str]:
        """Return request headers keyed by name.

        Later entries win when a header name repeats.

        Returns:
            dict[str, str]: Header values keyed by header name.
        """
        return {header.key: header.value for header in self.headers}


class TranslationConfig(BaseSchema):
    """Translation and scheduling knobs."""

    prompt: str = Field(DEFAULT_PROMPT, min_length=1, description="System prompt")
    batch_size: int = Field(50, ge=1, description="Entries per backend request")
    parallel_requests: int = Field(
        1, ge=1, description="Backend requests in flight per file"
    )
    concurrency: int = Field(1, ge=1, description="Files processed per round")
    auto_continue: bool = Field(True, description="Resume partial translations")
    continue_on_error: bool = Field(
        True, description="Keep the queue running after a file fails"
    )
    max_retries: int = Field(3, ge=0, description="Retries per failed batch")
    language_detection_model: str = Field(
        "", description="Model used to detect the output language, empty disables"
    )


class OutputConfig(BaseSchema):
    """Where and how translated subtitles are written."""

    mode: OutputMode = Field(OutputMode.SEPARATE, description="separate|mux")
    mux_language: str = Field("por", min_length=1, description="Muxed track language")
    mux_title: str = Field(
        "Portuguese", min_length=1, description="Muxed track title"
    )
    separate_output_dir: str = Field(
        "", description="Output directory, empty writes next to the source"
    )
    cleanup_extracted_subtitles: bool = Field(
        False, description="Delete extracted subtitles after a video job"
    )
    cleanup_mux_artifacts: bool = Field(
        False, description="Delete intermediate subtitles after muxing"
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: object) -> OutputMode:
        if isinstance(value, OutputMode):
            return value
        if isinstance(value, str):
            return OutputMode(value)
        return value  # type: ignore[return-value]


class LogSinkConfig(BaseSchema):
    """Configuration for a single log sink."""

    type: LogSinkType = Field(
        ..., description="Log sink type (console|file|memory|noop)"
    )

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> LogSinkType:
        if isinstance(value, LogSinkType):
            return value
        if isinstance(value, str):
            return LogSinkType(value)
        return value  # type: ignore[return-value]


def _default_sinks() -> list[LogSinkConfig]:
    return [LogSinkConfig(type=LogSinkType.MEMORY)]


class LoggingConfig(BaseSchema):
    """Logging configuration for the queue."""

    sinks: list[LogSinkConfig] = Field(
        default_factory=_default_sinks, min_length=1, description="Log sinks to enable"
    )
    log_path: str | None = Field(
        None, min_length=1, description="JSONL file for the file sink"
    )
    max_entries: int = Field(
        500, ge=1, description="Entries retained by the in-memory log feed"
    )

    @model_validator(mode="after")
    def validate_sinks(self) -> LoggingConfig:
        """Ensure log sink types are unique and the file sink has a path.

        Returns:
            LoggingConfig: Validated logging configuration.

        Raises:
            ValueError: If sink types are duplicated or log_path is missing.
        """
        sink_types = [sink.type for sink in self.sinks]
        if len(set(sink_types)) != len(sink_types):
            raise ValueError("log sinks must not contain duplicates")
        if LogSinkType.FILE in sink_types and self.log_path is None:
            raise ValueError("log_path is required when the file sink is enabled")
        return self


class AppSettings(BaseSchema):
    """Complete settings read by the scheduler and stage runner."""

    endpoint: EndpointConfig = Field(
        default_factory=EndpointConfig, description="Backend endpoint"
    )
    translation: TranslationConfig = Field(
        default_factory=TranslationConfig, description="Translation settings"
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig, description="Output settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging settings"
    )
