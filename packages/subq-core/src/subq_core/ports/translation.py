"""Protocol definitions for the translation backend and its event streams."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from subq_schemas.config import EndpointConfig
from subq_schemas.events import TranslationErrorEvent, TranslationProgressEvent
from subq_schemas.primitives import JobId
from subq_schemas.subtitles import (
    DetectedLanguage,
    SubtitleFile,
    SubtitleTranslationResult,
    TranslationOptions,
)

type ProgressHandler = Callable[[TranslationProgressEvent], Awaitable[None]]
type ErrorHandler = Callable[[TranslationErrorEvent], Awaitable[None]]
type Unsubscribe = Callable[[], None]


@runtime_checkable
class TranslationBackendProtocol(Protocol):
    """Protocol for the LLM client that translates whole subtitle files."""

    async def translate_subtitle_full(
        self,
        subtitle: SubtitleFile,
        prompt: str,
        endpoint: EndpointConfig,
        headers: dict[str, str],
        job_id: JobId,
        options: TranslationOptions,
    ) -> SubtitleTranslationResult:
        """Translate every entry of a subtitle file.

        Progress and batch failures for job_id are published on the
        backend's event streams while the call is in flight.
        """
        raise NotImplementedError

    async def cancel_translation(self, job_id: JobId) -> None:
        """Ask the backend to stop work for one job."""
        raise NotImplementedError

    async def cancel_all_translations(self) -> None:
        """Ask the backend to stop all in-flight work."""
        raise NotImplementedError


@runtime_checkable
class LanguageDetectorProtocol(Protocol):
    """Protocol for detecting the language a prompt translates into."""

    async def detect_language(
        self,
        endpoint: EndpointConfig,
        model: str,
        prompt: str,
        headers: dict[str, str],
    ) -> DetectedLanguage:
        """Return the target language described by prompt."""
        raise NotImplementedError


@runtime_checkable
class TranslationEventSourceProtocol(Protocol):
    """Protocol for subscribing to backend progress and error streams."""

    def subscribe_progress(self, handler: ProgressHandler) -> Unsubscribe:
        """Register a progress handler and return its unsubscribe callable."""
        raise NotImplementedError

    def subscribe_error(self, handler: ErrorHandler) -> Unsubscribe:
        """Register an error handler and return its unsubscribe callable."""
        raise NotImplementedError
