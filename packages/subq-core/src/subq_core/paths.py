"""Derived output locations for pipeline artifacts."""

from __future__ import annotations

from pathlib import Path

EXTRACTED_SUFFIX = ".extracted.ass"
TRANSLATED_SUFFIX = ".translated.ass"
MUXED_SUFFIX = ".muxed.mkv"


def extracted_subtitle_path(video_path: str) -> str:
    """Return where the subtitle extracted from a video is written."""
    return _sibling(video_path, EXTRACTED_SUFFIX)


def translated_subtitle_path(source_path: str, output_dir: str = "") -> str:
    """Return where the translated subtitle for a source file is written.

    Args:
        source_path: Original file the job was created for.
        output_dir: Directory for translated files, empty for next to source.

    Returns:
        str: Output subtitle path.
    """
    source = Path(source_path)
    if output_dir:
        return str(Path(output_dir) / f"{source.stem}{TRANSLATED_SUFFIX}")
    return _sibling(source_path, TRANSLATED_SUFFIX)


def muxed_video_path(video_path: str) -> str:
    """Return where the muxed copy of a video is written."""
    return _sibling(video_path, MUXED_SUFFIX)


def _sibling(path: str, suffix: str) -> str:
    source = Path(path)
    return str(source.with_name(f"{source.stem}{suffix}"))
