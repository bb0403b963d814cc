"""subq-io: adapters for logging, media tooling and backend events."""

from subq_io.events import TranslationEventBus
from subq_io.logs import (
    CompositeLogSink,
    ConsoleLogSink,
    FileSystemLogSink,
    InMemoryLogSink,
    NoopLogSink,
    build_log_sink,
)
from subq_io.media import FfmpegToolchain, FileSystemCleaner

__all__ = [
    "CompositeLogSink",
    "ConsoleLogSink",
    "FfmpegToolchain",
    "FileSystemCleaner",
    "FileSystemLogSink",
    "InMemoryLogSink",
    "NoopLogSink",
    "TranslationEventBus",
    "build_log_sink",
]
