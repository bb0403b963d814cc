"""Queue scheduler: intake, control surface and round-based execution."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from uuid import uuid4

from subq_core.clock import Clock, now_timestamp
from subq_core.ports.media import MediaToolchainProtocol
from subq_core.ports.orchestrator import (
    LogSinkProtocol,
    QueueError,
    QueueErrorCode,
    QueueErrorDetails,
    QueueErrorInfo,
    build_job_log,
    build_queue_log,
)
from subq_core.ports.translation import TranslationBackendProtocol
from subq_core.settings import SettingsProvider
from subq_core.stages import StageRunner
from subq_core.store import QueueStore
from subq_schemas.events import (
    FilesAddedData,
    JobEvent,
    QueueDrainedData,
    QueueEvent,
)
from subq_schemas.jobs import FileEntry, JobRecord
from subq_schemas.primitives import (
    ACTIVE_JOB_STATUSES,
    TERMINAL_JOB_STATUSES,
    JobId,
    JobKind,
    JobStatus,
    JsonValue,
    LogLevel,
)


class QueueScheduler:
    """Owns the queue control surface and drives scheduling rounds.

    A round takes the first ``concurrency`` pending jobs in queue order, runs
    them concurrently and waits for all of them to settle before the next
    round is considered. Only one driver runs rounds at a time.
    """

    def __init__(
        self,
        *,
        store: QueueStore,
        settings: SettingsProvider,
        runner: StageRunner,
        media: MediaToolchainProtocol,
        backend: TranslationBackendProtocol,
        log_sink: LogSinkProtocol | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            store: Queue state owner.
            settings: Provider returning the current settings.
            runner: Pipeline runner for individual jobs.
            media: Video toolchain used for track discovery.
            backend: Translation backend receiving cancellation signals.
            log_sink: Optional log sink.
            clock: Timestamp source for log entries.
        """
        self._store = store
        self._settings = settings
        self._runner = runner
        self._media = media
        self._backend = backend
        self._log_sink = log_sink
        self._clock = clock or now_timestamp
        self._driver: asyncio.Task[None] | None = None
        self._discovery_tasks: set[asyncio.Task[None]] = set()
        runner.set_halt_hook(self.pause_translation)

    @property
    def store(self) -> QueueStore:
        """Return the queue state owner."""
        return self._store

    # Intake

    async def add_files(self, entries: Iterable[FileEntry]) -> list[JobRecord]:
        """Append files to the queue as pending jobs.

        Video jobs start subtitle track discovery in the background.

        Args:
            entries: Files to enqueue, in order.

        Returns:
            list[JobRecord]: The new jobs.
        """
        jobs = [JobRecord.from_entry(uuid4(), entry) for entry in entries]
        if not jobs:
            return []
        self._store.append_jobs(jobs)
        videos = [job for job in jobs if job.kind == JobKind.VIDEO]
        for job in videos:
            task = asyncio.create_task(self._discover_tracks(job))
            self._discovery_tasks.add(task)
            task.add_done_callback(self._discovery_tasks.discard)
        await self._emit_queue(
            QueueEvent.FILES_ADDED,
            f"{len(jobs)} file(s) added to the queue",
            data=FilesAddedData(count=len(jobs), videos=len(videos)).model_dump(),
        )
        return jobs

    async def wait_for_track_discovery(self) -> None:
        """Wait until every outstanding track discovery has finished."""
        while self._discovery_tasks:
            # Track state is written before the log entry, so a failed log
            # write leaves nothing to recover.
            await asyncio.gather(*list(self._discovery_tasks), return_exceptions=True)

    async def _discover_tracks(self, job: JobRecord) -> None:
        try:
            tracks = await self._media.list_subtitle_tracks(job.path)
        except Exception as exc:
            self._store.update_job(job.id, subtitle_tracks=[], is_loading_tracks=False)
            await self._emit_job(
                job,
                JobEvent.TRACK_DISCOVERY_FAILED,
                f"Could not list subtitle tracks of {job.name}: {exc}",
                level=LogLevel.WARNING,
            )
            return
        current = self._store.get(job.id)
        changes: dict[str, object] = {
            "subtitle_tracks": tracks,
            "is_loading_tracks": False,
        }
        if current is not None and current.selected_track_index is None:
            changes["selected_track_index"] = 0
        if self._store.update_job(job.id, **changes):
            await self._emit_job(
                job,
                JobEvent.TRACKS_DISCOVERED,
                f"Found {len(tracks)} subtitle track(s) in {job.name}",
                data={"tracks": len(tracks)},
            )

    # Queue editing

    def remove_file(self, job_id: JobId) -> None:
        """Remove a job that is not actively processing.

        Raises:
            QueueError: If the job is inside a pipeline stage.
        """
        job = self._store.get(job_id)
        if job is None:
            return
        if job.status in ACTIVE_JOB_STATUSES:
            raise _invalid_state(job, "cancel the job before removing it")
        self._store.remove_job(job_id)

    def clear_queue(self) -> None:
        """Remove every job from the queue.

        Raises:
            QueueError: If any job is inside a pipeline stage.
        """
        active = self._store.active_jobs()
        if active:
            raise _invalid_state(active[0], "cancel running jobs before clearing")
        self._store.clear()

    def reorder_queue(self, from_index: int, to_index: int) -> None:
        """Move one job to a new queue position.

        Raises:
            QueueError: If either index is outside the queue.
        """
        try:
            self._store.move_job(from_index, to_index)
        except IndexError as exc:
            raise QueueError(
                QueueErrorInfo(
                    code=QueueErrorCode.INVALID_INDEX,
                    message=str(exc),
                    details=QueueErrorDetails(index=from_index, reason=str(exc)),
                )
            ) from exc

    def set_selected_track(self, job_id: JobId, track_index: int) -> None:
        """Choose the subtitle stream extracted for one video job.

        Raises:
            QueueError: If the job is not queued, is not a video, or the
                index is negative.
        """
        job = self._store.get(job_id)
        if job is None:
            raise QueueError(
                QueueErrorInfo(
                    code=QueueErrorCode.JOB_NOT_FOUND,
                    message=f"job {job_id} is not queued",
                    details=QueueErrorDetails(job_id=job_id),
                )
            )
        if job.kind != JobKind.VIDEO:
            raise _invalid_state(job, "only video jobs have subtitle tracks")
        _check_track_index(track_index)
        self._store.update_job(job_id, selected_track_index=track_index)

    async def set_all_video_tracks(self, track_index: int) -> None:
        """Choose the subtitle stream extracted for every video job.

        Raises:
            QueueError: If the index is negative.
        """
        _check_track_index(track_index)
        videos = [
            job for job in self._store.snapshot.jobs if job.kind == JobKind.VIDEO
        ]
        for job in videos:
            self._store.update_job(job.id, selected_track_index=track_index)
        await self._emit_queue(
            QueueEvent.TRACKS_APPLIED,
            f"Track {track_index} selected for {len(videos)} video(s)",
            data={"track_index": track_index, "videos": len(videos)},
        )

    # Run control

    async def start_translation(self) -> None:
        """Start processing pending jobs and return once rounds stop."""
        if not self._store.snapshot.jobs:
            return
        self._store.set_flags(is_translating=True, is_paused=False)
        await self._emit_queue(QueueEvent.STARTED, "Starting translation")
        await self._ensure_driver()

    async def pause_translation(self) -> None:
        """Hold back new rounds; running jobs continue.

        Does nothing while no run is active, so a stopped queue is never
        left paused.
        """
        if not self._store.snapshot.is_translating:
            return
        self._store.set_flags(is_paused=True)
        await self._emit_queue(
            QueueEvent.PAUSED, "Translation paused", level=LogLevel.WARNING
        )

    async def resume_translation(self) -> None:
        """Release a pause and continue with the next round."""
        self._store.set_flags(is_paused=False)
        await self._emit_queue(QueueEvent.RESUMED, "Translation resumed")
        await self._ensure_driver()

    async def stop_translation(self) -> None:
        """Stop scheduling rounds; in-flight stage work is not cancelled."""
        self._store.set_flags(is_translating=False, is_paused=False)
        self._store.set_current(None)
        await self._emit_queue(
            QueueEvent.STOPPED, "Translation stopped", level=LogLevel.WARNING
        )

    # Cancellation

    async def cancel_file_translation(self, job_id: JobId) -> None:
        """Cancel one job.

        Pending jobs are cancelled locally. Processing jobs are cancelled
        locally first and the backend is asked to stop its work.
        """
        job = self._store.get(job_id)
        if job is None:
            return
        if job.status == JobStatus.PENDING:
            self._store.set_status(job_id, JobStatus.CANCELLED)
            await self._emit_job(job, JobEvent.CANCELLED, f"{job.name} cancelled")
            return
        if job.status not in ACTIVE_JOB_STATUSES:
            return
        self._store.set_status(job_id, JobStatus.CANCELLED)
        try:
            await self._backend.cancel_translation(job_id)
        except Exception as exc:
            await self._emit_job(
                job,
                JobEvent.CANCELLED,
                f"Backend did not acknowledge cancellation of {job.name}: {exc}",
                level=LogLevel.WARNING,
            )

    async def cancel_all_translations(self) -> None:
        """Cancel every pending and processing job and stop the queue."""
        cancelled = 0
        for job in list(self._store.snapshot.jobs):
            if job.status == JobStatus.PENDING or job.status in ACTIVE_JOB_STATUSES:
                self._store.set_status(job.id, JobStatus.CANCELLED)
                cancelled += 1
        self._store.set_flags(is_translating=False, is_paused=False)
        self._store.set_current(None)
        try:
            await self._backend.cancel_all_translations()
        except Exception as exc:
            await self._emit_queue(
                QueueEvent.CANCEL_SIGNAL_FAILED,
                f"Backend did not acknowledge cancellation: {exc}",
                level=LogLevel.WARNING,
            )
        await self._emit_queue(
            QueueEvent.CANCELLED_ALL,
            f"{cancelled} translation(s) cancelled",
            level=LogLevel.WARNING,
            data={"cancelled": cancelled},
        )

    # Rounds

    async def _ensure_driver(self) -> None:
        if self._driver is None or self._driver.done():
            self._driver = asyncio.create_task(self._drive())
        await asyncio.shield(self._driver)

    async def _drive(self) -> None:
        while True:
            snapshot = self._store.snapshot
            if not snapshot.is_translating or snapshot.is_paused:
                return
            pending = self._store.pending_jobs()
            if not pending:
                await self._finish()
                return
            concurrency = self._settings().translation.concurrency
            batch = pending[:concurrency]
            results = await asyncio.gather(
                *(self._runner.run(job.id) for job in batch),
                return_exceptions=True,
            )
            for job, result in zip(batch, results, strict=True):
                if isinstance(result, Exception):
                    await self._handle_crash(job, result)

    async def _finish(self) -> None:
        self._store.set_flags(is_translating=False)
        self._store.set_current(None)
        counts = self._store.status_counts()
        await self._emit_queue(
            QueueEvent.DRAINED,
            "All files have been processed",
            level=LogLevel.SUCCESS,
            data=QueueDrainedData(
                completed=counts[JobStatus.COMPLETED],
                errors=counts[JobStatus.ERROR],
                cancelled=counts[JobStatus.CANCELLED],
            ).model_dump(),
        )

    async def _handle_crash(self, job: JobRecord, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        current = self._store.get(job.id)
        if current is not None and current.status not in TERMINAL_JOB_STATUSES:
            self._store.set_status(job.id, JobStatus.ERROR, error=message)
        halt = not self._settings().translation.continue_on_error
        if halt and not self._store.snapshot.is_paused:
            await self.pause_translation()
        await self._emit_queue(
            QueueEvent.RUNNER_CRASHED,
            f"Unexpected failure while processing {job.name}: {message}",
            level=LogLevel.ERROR,
            data={"job_id": str(job.id)},
        )

    async def _emit_queue(
        self,
        event: QueueEvent,
        message: str,
        *,
        level: LogLevel = LogLevel.INFO,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        if self._log_sink is None:
            return
        await self._log_sink.emit_log(
            build_queue_log(self._clock(), event, message, level=level, data=data)
        )

    async def _emit_job(
        self,
        job: JobRecord,
        event: JobEvent,
        message: str,
        *,
        level: LogLevel = LogLevel.INFO,
        data: dict[str, JsonValue] | None = None,
    ) -> None:
        if self._log_sink is None:
            return
        await self._log_sink.emit_log(
            build_job_log(self._clock(), job, event, message, level=level, data=data)
        )


def _invalid_state(job: JobRecord, reason: str) -> QueueError:
    return QueueError(
        QueueErrorInfo(
            code=QueueErrorCode.INVALID_STATE,
            message=f"{job.name} is {job.status}; {reason}",
            details=QueueErrorDetails(
                job_id=job.id, status=JobStatus(job.status), reason=reason
            ),
        )
    )


def _check_track_index(track_index: int) -> None:
    if track_index < 0:
        reason = f"track index must be non-negative: {track_index}"
        raise QueueError(
            QueueErrorInfo(
                code=QueueErrorCode.INVALID_INDEX,
                message=reason,
                details=QueueErrorDetails(index=track_index, reason=reason),
            )
        )
