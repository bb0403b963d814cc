"""Log sink adapters for queue events."""

from __future__ import annotations

import asyncio
import sys
from collections import deque
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from subq_core.ports.orchestrator import LogSinkProtocol
from subq_schemas.config import LoggingConfig
from subq_schemas.logs import LogEntry
from subq_schemas.primitives import LogLevel, LogSinkType

DEFAULT_MAX_ENTRIES = 500


class InMemoryLogSink(LogSinkProtocol):
    """Bounded log feed kept newest first, as shown in the logs drawer."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        """Initialize the in-memory log sink.

        Args:
            max_entries: Number of entries retained before the oldest drop.

        Raises:
            ValueError: If max_entries is not positive.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)

    @property
    def entries(self) -> list[LogEntry]:
        """Return retained entries, newest first."""
        return list(self._entries)

    async def emit_log(self, entry: LogEntry) -> None:
        """Store a log entry at the head of the feed."""
        self._entries.appendleft(entry)

    def filter(
        self, level: LogLevel | None = None, file: str | None = None
    ) -> list[LogEntry]:
        """Return retained entries matching a level and/or file name.

        Args:
            level: Only entries with this level, any level when None.
            file: Only entries for this file display name, any when None.

        Returns:
            list[LogEntry]: Matching entries, newest first.
        """
        return [
            entry
            for entry in self._entries
            if (level is None or entry.level == level)
            and (file is None or entry.file == file)
        ]

    def clear(self) -> None:
        """Drop every retained entry."""
        self._entries.clear()


class FileSystemLogSink(LogSinkProtocol):
    """Log sink that appends JSONL entries to a file."""

    def __init__(self, path: str) -> None:
        """Initialize the log sink with a file path."""
        self._path = Path(path)

    async def emit_log(self, entry: LogEntry) -> None:
        """Append a log entry to the JSONL file."""
        await asyncio.to_thread(_append_jsonl, self._path, entry)


class CompositeLogSink(LogSinkProtocol):
    """Log sink that forwards entries to multiple sinks."""

    def __init__(self, sinks: Iterable[LogSinkProtocol]) -> None:
        """Initialize the composite log sink."""
        self._sinks = list(sinks)

    async def emit_log(self, entry: LogEntry) -> None:
        """Forward log entries to each sink."""
        for sink in self._sinks:
            await sink.emit_log(entry)


class ConsoleLogSink(LogSinkProtocol):
    """Log sink that writes JSONL entries to stderr."""

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize the console log sink.

        Args:
            stream: Output stream to write JSONL log entries.
        """
        self._stream = stream or sys.stderr

    async def emit_log(self, entry: LogEntry) -> None:
        """Write log entry JSONL to the output stream."""
        self._stream.write(entry.model_dump_json() + "\n")
        self._stream.flush()


class NoopLogSink(LogSinkProtocol):
    """Log sink that drops all log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Ignore log entries."""
        return None


def build_log_sink(
    logging_config: LoggingConfig,
    *,
    memory_sink: InMemoryLogSink | None = None,
    stream: TextIO | None = None,
) -> LogSinkProtocol:
    """Build a log sink from configuration.

    Args:
        logging_config: Logging configuration.
        memory_sink: Existing log feed to reuse for the memory sink.
        stream: Optional stream for console logging.

    Returns:
        LogSinkProtocol: Configured log sink.

    Raises:
        ValueError: If an unsupported log sink type is configured.
    """
    sinks: list[LogSinkProtocol] = []
    for sink_config in logging_config.sinks:
        if sink_config.type == LogSinkType.MEMORY:
            sinks.append(
                memory_sink or InMemoryLogSink(max_entries=logging_config.max_entries)
            )
        elif sink_config.type == LogSinkType.FILE:
            if logging_config.log_path is None:
                raise ValueError("file log sink requires log_path")
            sinks.append(FileSystemLogSink(logging_config.log_path))
        elif sink_config.type == LogSinkType.CONSOLE:
            sinks.append(ConsoleLogSink(stream=stream))
        elif sink_config.type == LogSinkType.NOOP:
            sinks.append(NoopLogSink())
        else:
            raise ValueError(f"Unsupported log sink type: {sink_config.type}")

    if len(sinks) == 1:
        return sinks[0]
    return CompositeLogSink(sinks)


def _append_jsonl(path: Path, entry: LogEntry) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(entry.model_dump_json(exclude_none=True) + "\n")
