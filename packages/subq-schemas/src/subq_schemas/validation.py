"""Validation entrypoints for settings and event payloads."""

from __future__ import annotations

from subq_schemas.config import AppSettings
from subq_schemas.events import TranslationErrorEvent, TranslationProgressEvent
from subq_schemas.primitives import JsonValue


def validate_settings(payload: dict[str, JsonValue]) -> AppSettings:
    """Validate a settings payload.

    Args:
        payload: Raw settings payload.

    Returns:
        AppSettings: Validated settings.
    """
    return AppSettings.model_validate(payload)


def parse_progress_event(payload: str | bytes) -> TranslationProgressEvent:
    """Parse a JSON progress notification published by a backend.

    Args:
        payload: JSON encoded progress event.

    Returns:
        TranslationProgressEvent: Validated progress event.
    """
    return TranslationProgressEvent.model_validate_json(payload)


def parse_error_event(payload: str | bytes) -> TranslationErrorEvent:
    """Parse a JSON error notification published by a backend.

    Args:
        payload: JSON encoded error event.

    Returns:
        TranslationErrorEvent: Validated error event.
    """
    return TranslationErrorEvent.model_validate_json(payload)
