"""Settings loading and the settings holder read by the queue."""

from __future__ import annotations

import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from subq_schemas.config import AppSettings
from subq_schemas.validation import validate_settings

type SettingsProvider = Callable[[], AppSettings]


class SettingsError(Exception):
    """Raised when a settings file cannot be read or validated."""

    def __init__(self, path: Path, reason: str) -> None:
        """Initialize the settings error.

        Args:
            path: Settings file that failed.
            reason: Description of the failure.
        """
        super().__init__(f"Invalid settings file {path}: {reason}")
        self.path = path
        self.reason = reason


def load_settings(path: Path) -> AppSettings:
    """Load and validate settings from a TOML file.

    Args:
        path: Path to the TOML settings file.

    Returns:
        AppSettings: Validated settings.

    Raises:
        SettingsError: If the file is missing, malformed or invalid.
    """
    try:
        with path.open("rb") as handle:
            payload = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise SettingsError(path, "file not found") from exc
    except tomllib.TOMLDecodeError as exc:
        raise SettingsError(path, str(exc)) from exc
    try:
        return validate_settings(payload)
    except ValidationError as exc:
        raise SettingsError(path, str(exc)) from exc


class SettingsStore:
    """Holds the current settings and hands out immutable snapshots."""

    def __init__(self, settings: AppSettings | None = None) -> None:
        """Initialize the settings store.

        Args:
            settings: Starting settings, defaults when omitted.
        """
        self._settings = settings or AppSettings()

    def snapshot(self) -> AppSettings:
        """Return a deep copy of the current settings.

        Returns:
            AppSettings: Settings isolated from later updates.
        """
        return self._settings.model_copy(deep=True)

    def replace(self, settings: AppSettings) -> None:
        """Swap in a complete settings object."""
        self._settings = settings

    def update(self, section: str, **changes: Any) -> AppSettings:
        """Apply a validated partial update to one settings section.

        Args:
            section: Section name (endpoint, translation, output, logging).
            **changes: Field values to set on the section.

        Returns:
            AppSettings: The new settings.

        Raises:
            KeyError: If the section does not exist.
        """
        if section not in AppSettings.model_fields:
            raise KeyError(section)
        current = getattr(self._settings, section)
        merged = type(current).model_validate({**current.model_dump(), **changes})
        self._settings = self._settings.model_copy(update={section: merged})
        return self._settings
