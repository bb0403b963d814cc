"""Unit tests for validation entrypoint wrappers."""

from uuid import UUID

import pytest
from pydantic import ValidationError

from subq_schemas.primitives import OutputMode
from subq_schemas.validation import (
    parse_error_event,
    parse_progress_event,
    validate_settings,
)

U7 = UUID("01945b78-c431-7000-8000-000000000001")


def test_validate_settings_accepts_sections() -> None:
    """Ensure raw settings payloads validate into settings."""
    settings = validate_settings({
        "endpoint": {"base_url": "https://api.example.com/v1", "model": "m"},
        "output": {"mode": "mux", "cleanup_mux_artifacts": True},
    })

    assert settings.endpoint.effective_model == "m"
    assert settings.output.mode == OutputMode.MUX
    assert settings.output.cleanup_mux_artifacts is True


def test_validate_settings_rejects_wrong_types() -> None:
    """Ensure strict typing rejects strings for numbers."""
    with pytest.raises(ValidationError):
        validate_settings({"translation": {"batch_size": "50"}})


def test_parse_progress_event() -> None:
    """Ensure JSON progress payloads parse with UUID job ids."""
    event = parse_progress_event(
        f'{{"job_id": "{U7}", "progress": 12.5, "translated": 5, "total": 40}}'
    )

    assert event.job_id == U7
    assert event.progress == 12.5
    assert event.total == 40


def test_parse_error_event_from_bytes() -> None:
    """Ensure error payloads parse from bytes."""
    event = parse_error_event(
        f'{{"job_id": "{U7}", "error": "rate limited", "retry_count": 1}}'.encode()
    )

    assert event.error == "rate limited"
    assert event.retry_count == 1


def test_parse_error_event_rejects_negative_retry() -> None:
    """Ensure retry counts are non-negative."""
    with pytest.raises(ValidationError):
        parse_error_event(f'{{"job_id": "{U7}", "error": "x", "retry_count": -1}}')
