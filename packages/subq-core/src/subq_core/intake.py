"""Classify dropped or picked paths into queue file entries."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from subq_schemas.jobs import FileEntry
from subq_schemas.primitives import JobKind

SUBTITLE_EXTENSIONS = frozenset({"srt", "ass", "ssa"})
VIDEO_EXTENSIONS = frozenset({"mkv", "mp4", "avi", "webm", "mov"})


def classify_path(path: str) -> JobKind | None:
    """Return the job kind for a path based on its extension.

    Args:
        path: File path as selected by the user.

    Returns:
        JobKind | None: Kind of job, or None for unsupported files.
    """
    extension = Path(path).suffix.lower().lstrip(".")
    if extension in SUBTITLE_EXTENSIONS:
        return JobKind.SUBTITLE
    if extension in VIDEO_EXTENSIONS:
        return JobKind.VIDEO
    return None


def build_file_entries(paths: Iterable[str]) -> list[FileEntry]:
    """Build queue entries for supported paths, preserving order.

    Unsupported files are skipped.

    Args:
        paths: Candidate file paths.

    Returns:
        list[FileEntry]: Entries ready for the scheduler.
    """
    entries: list[FileEntry] = []
    for path in paths:
        kind = classify_path(path)
        if kind is None:
            continue
        entries.append(FileEntry(name=Path(path).name, path=path, kind=kind))
    return entries
