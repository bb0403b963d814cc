"""Per-file pipeline that moves one job from pending to a terminal status."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from subq_core.clock import Clock, now_timestamp
from subq_core.paths import (
    extracted_subtitle_path,
    muxed_video_path,
    translated_subtitle_path,
)
from subq_core.ports.media import FileCleanerProtocol, MediaToolchainProtocol
from subq_core.ports.orchestrator import LogSinkProtocol, build_job_log
from subq_core.ports.subtitles import SubtitleStoreProtocol
from subq_core.ports.translation import (
    LanguageDetectorProtocol,
    TranslationBackendProtocol,
)
from subq_core.settings import SettingsProvider
from subq_core.store import QueueStore
from subq_schemas.config import AppSettings
from subq_schemas.events import JobEvent, JobFailedData, TranslationPartialData
from subq_schemas.jobs import JobRecord
from subq_schemas.primitives import (
    JobId,
    JobKind,
    JobStatus,
    JsonValue,
    LogLevel,
    OutputMode,
)
from subq_schemas.subtitles import SubtitleFile, TranslationOptions

type HaltHook = Callable[[], Awaitable[None]]


class Stage(StrEnum):
    """Pipeline steps reported when a job fails."""

    EXTRACT = "extract"
    LOAD = "load"
    DETECT_LANGUAGE = "detect_language"
    TRANSLATE = "translate"
    SAVE = "save"
    MUX = "mux"


class JobCancelledError(Exception):
    """Raised inside the pipeline when its job was cancelled or removed."""


@dataclass(slots=True)
class _JobRun:
    """Mutable per-run context for a single job."""

    job_id: JobId
    settings: AppSettings
    mux_language: str
    mux_title: str
    stage: Stage = Stage.LOAD
    extracted_path: str | None = None
    output_subtitle_path: str | None = None
    translated: SubtitleFile | None = None


class StageRunner:
    """Runs the extract, load, detect, translate, save and mux pipeline."""

    def __init__(
        self,
        *,
        store: QueueStore,
        settings: SettingsProvider,
        subtitles: SubtitleStoreProtocol,
        media: MediaToolchainProtocol,
        backend: TranslationBackendProtocol,
        cleaner: FileCleanerProtocol,
        language_detector: LanguageDetectorProtocol | None = None,
        log_sink: LogSinkProtocol | None = None,
        clock: Clock | None = None,
        on_halt: HaltHook | None = None,
    ) -> None:
        """Initialize the stage runner.

        Args:
            store: Queue state owner.
            settings: Provider returning the current settings.
            subtitles: Subtitle load/save adapter.
            media: Video track extraction and muxing adapter.
            backend: Translation backend.
            cleaner: Adapter that deletes intermediate files.
            language_detector: Optional output language detector.
            log_sink: Optional log sink.
            clock: Timestamp source for log entries.
            on_halt: Called when a failure must stop the queue.
        """
        self._store = store
        self._settings = settings
        self._subtitles = subtitles
        self._media = media
        self._backend = backend
        self._cleaner = cleaner
        self._language_detector = language_detector
        self._log_sink = log_sink
        self._clock = clock or now_timestamp
        self._on_halt = on_halt

    def set_halt_hook(self, hook: HaltHook) -> None:
        """Install the callback used when a failure must stop the queue."""
        self._on_halt = hook

    async def run(self, job_id: JobId) -> JobStatus | None:
        """Process one pending job to completion.

        Fatal stage failures are recorded on the job and never raised. Errors
        from the log sink propagate after the queue halt hook has run.

        Args:
            job_id: Job to process.

        Returns:
            JobStatus | None: Final status, or None if the job was not pending.
        """
        job = self._store.get(job_id)
        if job is None or job.status != JobStatus.PENDING:
            return None
        settings = self._settings()
        run = _JobRun(
            job_id=job_id,
            settings=settings,
            mux_language=settings.output.mux_language,
            mux_title=settings.output.mux_title,
        )
        self._store.set_current(job_id)
        try:
            await self._run_pipeline(job, run)
        except JobCancelledError:
            await self._log_cancelled(job)
            return JobStatus.CANCELLED
        except Exception as exc:
            if self._is_cancelled(job_id):
                await self._log_cancelled(job)
                return JobStatus.CANCELLED
            await self._fail(job, run, exc)
            return JobStatus.ERROR
        return JobStatus.COMPLETED

    async def _run_pipeline(self, job: JobRecord, run: _JobRun) -> None:
        settings = run.settings
        subtitle_path = job.path
        if job.kind == JobKind.VIDEO:
            run.stage = Stage.EXTRACT
            subtitle_path = await self._extract(job, run)

        run.stage = Stage.LOAD
        subtitle = await self._subtitles.load_subtitle(subtitle_path)
        self._checkpoint(run.job_id)
        self._store.update_job(
            run.job_id, original_subtitle=subtitle, total_lines=len(subtitle.entries)
        )

        if settings.translation.language_detection_model:
            run.stage = Stage.DETECT_LANGUAGE
            await self._detect_language(job, run)

        run.stage = Stage.TRANSLATE
        await self._translate(job, run, subtitle)

        run.stage = Stage.SAVE
        await self._save(job, run)

        if settings.output.mode == OutputMode.MUX and job.kind == JobKind.VIDEO:
            run.stage = Stage.MUX
            await self._mux(job, run)

        await self._cleanup(job, run)
        self._transition(run.job_id, JobStatus.COMPLETED)
        await self._emit(
            job,
            JobEvent.COMPLETED,
            f"{job.name} translated successfully",
            level=LogLevel.SUCCESS,
        )

    async def _extract(self, job: JobRecord, run: _JobRun) -> str:
        self._transition(run.job_id, JobStatus.EXTRACTING)
        await self._emit(
            job, JobEvent.EXTRACTION_STARTED, f"Extracting subtitle from {job.name}"
        )
        current = self._store.get(run.job_id)
        track_index = 0
        if current is not None and current.selected_track_index is not None:
            track_index = current.selected_track_index
        output_path = extracted_subtitle_path(job.path)
        await self._media.extract_subtitle_track(job.path, track_index, output_path)
        run.extracted_path = output_path
        self._checkpoint(run.job_id)
        self._store.update_job(run.job_id, extracted_subtitle_path=output_path)
        return output_path

    async def _detect_language(self, job: JobRecord, run: _JobRun) -> None:
        if self._language_detector is None:
            await self._emit(
                job,
                JobEvent.LANGUAGE_DETECTION_FAILED,
                f"No language detector configured for {job.name}, "
                f"using {run.mux_language} ({run.mux_title})",
                level=LogLevel.WARNING,
                data={"error": "no language detector configured"},
            )
            return
        self._transition(run.job_id, JobStatus.DETECTING_LANGUAGE)
        settings = run.settings
        try:
            detected = await self._language_detector.detect_language(
                settings.endpoint,
                settings.translation.language_detection_model,
                settings.translation.prompt,
                settings.endpoint.header_map(),
            )
        except Exception as exc:
            self._checkpoint(run.job_id)
            await self._emit(
                job,
                JobEvent.LANGUAGE_DETECTION_FAILED,
                f"Language detection failed for {job.name}, "
                f"using {run.mux_language} ({run.mux_title})",
                level=LogLevel.WARNING,
                data={"error": str(exc)},
            )
            return
        self._checkpoint(run.job_id)
        run.mux_language = detected.code
        run.mux_title = detected.display_name
        self._store.update_job(run.job_id, detected_language=detected)
        await self._emit(
            job,
            JobEvent.LANGUAGE_DETECTED,
            f"Detected output language {detected.display_name}",
            data={"code": detected.code, "name": detected.name},
        )

    async def _translate(
        self, job: JobRecord, run: _JobRun, subtitle: SubtitleFile
    ) -> None:
        settings = run.settings
        self._transition(run.job_id, JobStatus.TRANSLATING)
        self._store.update_job(run.job_id, progress=0.0)
        await self._emit(
            job,
            JobEvent.TRANSLATION_STARTED,
            f"Translating {job.name} ({len(subtitle.entries)} lines)",
        )
        options = TranslationOptions(
            batch_size=settings.translation.batch_size,
            parallel_requests=settings.translation.parallel_requests,
            max_retries=settings.translation.max_retries,
            auto_continue=settings.translation.auto_continue,
            continue_on_error=settings.translation.continue_on_error,
        )
        result = await self._backend.translate_subtitle_full(
            subtitle,
            settings.translation.prompt,
            settings.endpoint,
            settings.endpoint.header_map(),
            run.job_id,
            options,
        )
        self._checkpoint(run.job_id)
        total = result.progress.total_entries or len(subtitle.entries)
        self._store.update_job(
            run.job_id,
            translated_entries=result.file.entries,
            translated_lines=min(result.progress.translated_entries, total),
            total_lines=total,
            progress=100.0,
        )
        run.translated = result.file
        if result.progress.is_partial and settings.translation.auto_continue:
            # Continuation requests are not issued; the partial file is kept.
            await self._emit(
                job,
                JobEvent.TRANSLATION_PARTIAL,
                f"Partial translation for {job.name}, continuing",
                level=LogLevel.WARNING,
                data=TranslationPartialData(
                    translated_entries=result.progress.translated_entries,
                    total_entries=result.progress.total_entries,
                    error_message=result.error_message,
                ).model_dump(exclude_none=True),
            )
        run.output_subtitle_path = translated_subtitle_path(
            job.path, settings.output.separate_output_dir
        )

    async def _save(self, job: JobRecord, run: _JobRun) -> None:
        self._transition(run.job_id, JobStatus.SAVING)
        output_path = run.output_subtitle_path
        translated = run.translated
        if output_path is None or translated is None:
            raise RuntimeError("translation produced no subtitle to save")
        await self._subtitles.save_subtitle(output_path, translated)
        self._checkpoint(run.job_id)
        self._store.update_job(run.job_id, output_subtitle_path=output_path)
        await self._emit(
            job, JobEvent.SAVED, f"Saved {output_path}", data={"path": output_path}
        )

    async def _mux(self, job: JobRecord, run: _JobRun) -> None:
        self._transition(run.job_id, JobStatus.MUXING)
        subtitle_path = run.output_subtitle_path
        if subtitle_path is None:
            raise RuntimeError("no translated subtitle to mux")
        output_path = muxed_video_path(job.path)
        await self._media.mux_subtitle_to_video(
            job.path,
            subtitle_path,
            output_path,
            language=run.mux_language,
            title=run.mux_title,
        )
        self._checkpoint(run.job_id)
        self._store.update_job(run.job_id, output_video_path=output_path)
        await self._emit(
            job,
            JobEvent.MUXED,
            f"Muxed subtitle into {output_path}",
            data={
                "path": output_path,
                "language": run.mux_language,
                "title": run.mux_title,
            },
        )

    async def _cleanup(self, job: JobRecord, run: _JobRun) -> None:
        paths = _cleanup_targets(job, run)
        if not paths:
            return
        try:
            await self._cleaner.delete_files(paths)
        except Exception as exc:
            await self._emit(
                job,
                JobEvent.CLEANUP_FAILED,
                f"Could not remove temporary files for {job.name}: {exc}",
                level=LogLevel.WARNING,
                data={"paths": list(paths)},
            )
        self._checkpoint(run.job_id)

    async def _fail(self, job: JobRecord, run: _JobRun, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        self._store.set_status(run.job_id, JobStatus.ERROR, error=message)
        try:
            await self._emit(
                job,
                JobEvent.FAILED,
                f"Failed to translate {job.name}: {message}",
                level=LogLevel.ERROR,
                data=JobFailedData(stage=run.stage, error=message).model_dump(),
            )
        finally:
            if not run.settings.translation.continue_on_error and self._on_halt:
                await self._on_halt()

    async def _log_cancelled(self, job: JobRecord) -> None:
        await self._emit(job, JobEvent.CANCELLED, f"{job.name} cancelled")

    def _is_cancelled(self, job_id: JobId) -> bool:
        job = self._store.get(job_id)
        return job is None or job.status == JobStatus.CANCELLED

    def _checkpoint(self, job_id: JobId) -> None:
        if self._is_cancelled(job_id):
            raise JobCancelledError(str(job_id))

    def _transition(self, job_id: JobId, status: JobStatus) -> None:
        if not self._store.set_status(job_id, status):
            raise JobCancelledError(str(job_id))
        self._store.set_current(job_id)

    async def _emit(
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
        entry = build_job_log(
            self._clock(), job, event, message, level=level, data=data
        )
        await self._log_sink.emit_log(entry)


def _cleanup_targets(job: JobRecord, run: _JobRun) -> list[str]:
    output = run.settings.output
    if job.kind != JobKind.VIDEO:
        return []
    if output.mode == OutputMode.MUX and output.cleanup_mux_artifacts:
        return [
            path
            for path in (run.output_subtitle_path, run.extracted_path)
            if path is not None
        ]
    if output.cleanup_extracted_subtitles and run.extracted_path is not None:
        return [run.extracted_path]
    return []
