"""Owned queue state with a narrow mutator API and change listeners."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from typing import Any

from subq_schemas.jobs import JobRecord, QueueSnapshot
from subq_schemas.primitives import (
    ACTIVE_JOB_STATUSES,
    TERMINAL_JOB_STATUSES,
    JobId,
    JobStatus,
)

type QueueListener = Callable[[QueueSnapshot], None]

_PROTECTED_FIELDS = frozenset({"id", "status", "error"})


class QueueStore:
    """Single owner of the queue snapshot.

    Every mutator derives the next snapshot from the latest one and runs to
    completion without suspending, so concurrent jobs on the same event loop
    never overwrite each other's writes. Listeners receive each new snapshot
    synchronously after it is installed.

    Writes for a job that has been cancelled are dropped, except a repeated
    cancellation. Progress patches are only applied to jobs in an active
    status.
    """

    def __init__(self, snapshot: QueueSnapshot | None = None) -> None:
        """Initialize the store.

        Args:
            snapshot: Optional starting snapshot, empty queue by default.
        """
        self._snapshot = snapshot or QueueSnapshot()
        self._listeners: list[QueueListener] = []

    @property
    def snapshot(self) -> QueueSnapshot:
        """Return the current queue snapshot."""
        return self._snapshot

    def subscribe(self, listener: QueueListener) -> Callable[[], None]:
        """Register a change listener.

        Args:
            listener: Callable invoked with every new snapshot.

        Returns:
            Callable[[], None]: Removes the listener when called.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # Queries

    def get(self, job_id: JobId) -> JobRecord | None:
        """Return the job with job_id, or None if it is not queued."""
        for job in self._snapshot.jobs:
            if job.id == job_id:
                return job
        return None

    def pending_jobs(self) -> list[JobRecord]:
        """Return pending jobs in queue order."""
        return [job for job in self._snapshot.jobs if job.status == JobStatus.PENDING]

    def active_jobs(self) -> list[JobRecord]:
        """Return jobs currently inside a pipeline stage."""
        return [
            job for job in self._snapshot.jobs if job.status in ACTIVE_JOB_STATUSES
        ]

    def is_processing(self) -> bool:
        """Return whether any job is inside a pipeline stage."""
        return any(job.status in ACTIVE_JOB_STATUSES for job in self._snapshot.jobs)

    def status_counts(self) -> dict[JobStatus, int]:
        """Return the number of jobs per status, including zero counts."""
        counts = Counter(JobStatus(job.status) for job in self._snapshot.jobs)
        return {status: counts.get(status, 0) for status in JobStatus}

    def current_file(self) -> JobRecord | None:
        """Return the job the focus pointer refers to, if still queued."""
        current_id = self._snapshot.current_file_id
        if current_id is None:
            return None
        return self.get(current_id)

    def is_terminal(self, job_id: JobId) -> bool:
        """Return whether a job is finished or no longer queued."""
        job = self.get(job_id)
        return job is None or job.status in TERMINAL_JOB_STATUSES

    # Mutators

    def append_jobs(self, jobs: list[JobRecord]) -> None:
        """Append jobs to the end of the queue in the given order."""
        if not jobs:
            return
        self._install(
            self._snapshot.model_copy(update={"jobs": [*self._snapshot.jobs, *jobs]})
        )

    def remove_job(self, job_id: JobId) -> JobRecord | None:
        """Remove a job from the queue.

        Returns:
            JobRecord | None: The removed job, or None if it was not queued.
        """
        removed = self.get(job_id)
        if removed is None:
            return None
        update: dict[str, Any] = {
            "jobs": [job for job in self._snapshot.jobs if job.id != job_id]
        }
        if self._snapshot.current_file_id == job_id:
            update["current_file_id"] = None
        self._install(self._snapshot.model_copy(update=update))
        return removed

    def clear(self) -> None:
        """Remove every job and clear the focus pointer."""
        self._install(
            self._snapshot.model_copy(update={"jobs": [], "current_file_id": None})
        )

    def move_job(self, from_index: int, to_index: int) -> None:
        """Move the job at from_index so that it ends up at to_index.

        Raises:
            IndexError: If either index is outside the queue.
        """
        jobs = list(self._snapshot.jobs)
        for index in (from_index, to_index):
            if not 0 <= index < len(jobs):
                raise IndexError(f"queue index out of range: {index}")
        jobs.insert(to_index, jobs.pop(from_index))
        self._install(self._snapshot.model_copy(update={"jobs": jobs}))

    def set_status(
        self, job_id: JobId, status: JobStatus, *, error: str | None = None
    ) -> bool:
        """Transition a job to a new status.

        The error message is stored for the error status and cleared for
        every other status.

        Returns:
            bool: True if the transition was applied.
        """
        job = self.get(job_id)
        if job is None:
            return False
        if job.status == JobStatus.CANCELLED and status != JobStatus.CANCELLED:
            return False
        message = error if status == JobStatus.ERROR else None
        self._replace(_patched(job, {"status": status, "error": message}))
        return True

    def update_job(self, job_id: JobId, **changes: Any) -> bool:
        """Patch non-status fields of a job.

        Returns:
            bool: True if the patch was applied.

        Raises:
            ValueError: If the patch touches id, status or error, names an
                unknown field, or fails job validation.
        """
        protected = _PROTECTED_FIELDS.intersection(changes)
        if protected:
            raise ValueError(
                f"fields must be changed via set_status: {sorted(protected)}"
            )
        unknown = set(changes).difference(JobRecord.model_fields)
        if unknown:
            raise ValueError(f"unknown job fields: {sorted(unknown)}")
        job = self.get(job_id)
        if job is None or job.status == JobStatus.CANCELLED:
            return False
        self._replace(_patched(job, changes))
        return True

    def apply_progress(
        self, job_id: JobId, progress: float, translated: int, total: int
    ) -> bool:
        """Merge a progress report into an active job.

        Translated lines never decrease and never exceed the total. Reports
        for jobs outside an active status are dropped.

        Returns:
            bool: True if the report was applied.
        """
        job = self.get(job_id)
        if job is None or job.status not in ACTIVE_JOB_STATUSES:
            return False
        total_lines = total if total > 0 else job.total_lines
        translated_lines = max(job.translated_lines, translated)
        if total_lines:
            translated_lines = min(translated_lines, total_lines)
        bounded = min(max(float(progress), 0.0), 100.0)
        self._replace(
            _patched(
                job,
                {
                    "progress": max(job.progress, bounded),
                    "translated_lines": translated_lines,
                    "total_lines": total_lines,
                },
            )
        )
        return True

    def set_flags(
        self, *, is_translating: bool | None = None, is_paused: bool | None = None
    ) -> None:
        """Set queue-level flags, leaving unspecified flags unchanged."""
        update: dict[str, bool] = {}
        if is_translating is not None:
            update["is_translating"] = is_translating
        if is_paused is not None:
            update["is_paused"] = is_paused
        if update:
            self._install(self._snapshot.model_copy(update=update))

    def set_current(self, job_id: JobId | None) -> None:
        """Point the focus pointer at a job, or clear it."""
        self._install(self._snapshot.model_copy(update={"current_file_id": job_id}))

    def _replace(self, updated: JobRecord) -> None:
        jobs = [updated if job.id == updated.id else job for job in self._snapshot.jobs]
        self._install(self._snapshot.model_copy(update={"jobs": jobs}))

    def _install(self, snapshot: QueueSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)


def _patched(job: JobRecord, changes: dict[str, Any]) -> JobRecord:
    """Apply changes to a job and run the record validators on the result.

    Returns:
        JobRecord: Validated replacement record.
    """
    fields = {name: getattr(job, name) for name in JobRecord.model_fields}
    return JobRecord.model_validate({**fields, **changes})
