"""Log sink adapters."""

from subq_io.logs.log_sink import (
    CompositeLogSink,
    ConsoleLogSink,
    FileSystemLogSink,
    InMemoryLogSink,
    NoopLogSink,
    build_log_sink,
)

__all__ = [
    "CompositeLogSink",
    "ConsoleLogSink",
    "FileSystemLogSink",
    "InMemoryLogSink",
    "NoopLogSink",
    "build_log_sink",
]
