"""Reconcile backend progress and error streams into queue state."""

from __future__ import annotations

from types import TracebackType
from typing import Self

from subq_core.clock import Clock, now_timestamp
from subq_core.ports.orchestrator import LogSinkProtocol, build_job_log
from subq_core.ports.translation import TranslationEventSourceProtocol, Unsubscribe
from subq_core.store import QueueStore
from subq_schemas.events import (
    JobEvent,
    TranslationErrorEvent,
    TranslationProgressEvent,
)
from subq_schemas.primitives import LogLevel


class EventBridge:
    """Subscribes once to backend event streams and patches the queue.

    Progress events update progress and line counts of active jobs. Error
    events are informational batch failures and only produce a warning log.
    Events for unknown jobs are dropped.
    """

    def __init__(
        self,
        *,
        source: TranslationEventSourceProtocol,
        store: QueueStore,
        log_sink: LogSinkProtocol | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the event bridge.

        Args:
            source: Backend event streams.
            store: Queue state owner.
            log_sink: Optional log sink for batch failures.
            clock: Timestamp source for log entries.
        """
        self._source = source
        self._store = store
        self._log_sink = log_sink
        self._clock = clock or now_timestamp
        self._unsubscribers: list[Unsubscribe] = []

    @property
    def is_started(self) -> bool:
        """Return whether the bridge is subscribed."""
        return bool(self._unsubscribers)

    def start(self) -> None:
        """Subscribe to both streams. Calling it again has no effect."""
        if self._unsubscribers:
            return
        self._unsubscribers = [
            self._source.subscribe_progress(self._on_progress),
            self._source.subscribe_error(self._on_error),
        ]

    def close(self) -> None:
        """Unsubscribe from both streams. Calling it again has no effect."""
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()

    async def __aenter__(self) -> Self:
        """Start the bridge for the duration of a context."""
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Close the bridge when the context exits."""
        self.close()

    async def _on_progress(self, event: TranslationProgressEvent) -> None:
        self._store.apply_progress(
            event.job_id, event.progress, event.translated, event.total
        )

    async def _on_error(self, event: TranslationErrorEvent) -> None:
        job = self._store.get(event.job_id)
        if job is None or self._log_sink is None:
            return
        entry = build_job_log(
            self._clock(),
            job,
            JobEvent.TRANSLATION_RETRY,
            f"Batch failed for {job.name} (attempt {event.retry_count}): "
            f"{event.error}",
            level=LogLevel.WARNING,
            data={"retry_count": event.retry_count, "error": event.error},
        )
        await self._log_sink.emit_log(entry)
