"""Protocol definitions for subtitle persistence."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from subq_schemas.subtitles import SubtitleFile


@runtime_checkable
class SubtitleStoreProtocol(Protocol):
    """Protocol for reading and writing subtitle files."""

    async def load_subtitle(self, path: str) -> SubtitleFile:
        """Parse the subtitle file at path."""
        raise NotImplementedError

    async def save_subtitle(self, path: str, subtitle: SubtitleFile) -> None:
        """Serialize a subtitle file to path."""
        raise NotImplementedError
