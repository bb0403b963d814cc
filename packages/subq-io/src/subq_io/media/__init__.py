"""Video tooling and file cleanup adapters."""

from subq_io.media.cleanup import FileSystemCleaner
from subq_io.media.ffmpeg import (
    FfmpegToolchain,
    build_extract_command,
    build_mux_command,
    build_probe_command,
    parse_probe_output,
)

__all__ = [
    "FfmpegToolchain",
    "FileSystemCleaner",
    "build_extract_command",
    "build_mux_command",
    "build_probe_command",
    "parse_probe_output",
]
