"""Recording collaborators and a wired scheduler for queue tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from subq_core.ports.media import FileCleanerProtocol, MediaToolchainProtocol
from subq_core.ports.orchestrator import LogSinkProtocol
from subq_core.ports.subtitles import SubtitleStoreProtocol
from subq_core.ports.translation import (
    LanguageDetectorProtocol,
    TranslationBackendProtocol,
)
from subq_core.scheduler import QueueScheduler
from subq_core.settings import SettingsStore
from subq_core.stages import StageRunner
from subq_core.store import QueueStore
from subq_schemas.config import AppSettings, EndpointConfig
from subq_schemas.jobs import FileEntry, JobRecord
from subq_schemas.logs import LogEntry
from subq_schemas.primitives import JobId, JobKind, JobStatus, SubtitleFormat
from subq_schemas.subtitles import (
    DetectedLanguage,
    SubtitleEntry,
    SubtitleFile,
    SubtitleTrack,
    SubtitleTranslationResult,
    TranslationOptions,
    TranslationProgress,
)

TIMESTAMP = "2026-01-26T12:00:00Z"


def build_subtitle(lines: int = 3) -> SubtitleFile:
    """Return a small ASS subtitle file."""
    return SubtitleFile(
        format=SubtitleFormat.ASS,
        entries=[
            SubtitleEntry(
                index=index,
                start_time=f"0:00:0{index}.00",
                end_time=f"0:00:0{index}.90",
                text=f"Line {index}",
            )
            for index in range(lines)
        ],
    )


class RecordingLogSink(LogSinkProtocol):
    def __init__(self) -> None:
        self.entries: list[LogEntry] = []
        self.fail_events: set[str] = set()

    async def emit_log(self, entry: LogEntry) -> None:
        if entry.event in self.fail_events:
            raise OSError(f"cannot write {entry.event}")
        self.entries.append(entry)

    def events(self) -> list[str]:
        return [entry.event for entry in self.entries]


class RecordingSubtitleStore(SubtitleStoreProtocol):
    def __init__(self, lines: int = 3) -> None:
        self.lines = lines
        self.loaded: list[str] = []
        self.saved: list[tuple[str, SubtitleFile]] = []
        self.fail_load: set[str] = set()
        self.fail_save = False

    async def load_subtitle(self, path: str) -> SubtitleFile:
        await asyncio.sleep(0)
        self.loaded.append(path)
        if path in self.fail_load:
            raise ValueError(f"cannot parse {path}")
        return build_subtitle(self.lines)

    async def save_subtitle(self, path: str, subtitle: SubtitleFile) -> None:
        await asyncio.sleep(0)
        if self.fail_save:
            raise OSError(f"cannot write {path}")
        self.saved.append((path, subtitle))


class RecordingMedia(MediaToolchainProtocol):
    def __init__(self) -> None:
        self.tracks: list[SubtitleTrack] = [
            SubtitleTrack(index=0, stream_index=2, codec="ass", language="eng")
        ]
        self.fail_listing = False
        self.fail_extract = False
        self.fail_mux = False
        self.listed: list[str] = []
        self.extracted: list[tuple[str, int, str]] = []
        self.muxed: list[tuple[str, str, str, str | None, str | None]] = []

    async def list_subtitle_tracks(self, video_path: str) -> list[SubtitleTrack]:
        await asyncio.sleep(0)
        self.listed.append(video_path)
        if self.fail_listing:
            raise RuntimeError("ffprobe failed")
        return list(self.tracks)

    async def extract_subtitle_track(
        self, video_path: str, track_index: int, output_path: str
    ) -> None:
        await asyncio.sleep(0)
        if self.fail_extract:
            raise RuntimeError(f"ffmpeg could not extract track {track_index}")
        self.extracted.append((video_path, track_index, output_path))

    async def mux_subtitle_to_video(
        self,
        video_path: str,
        subtitle_path: str,
        output_path: str,
        language: str | None = None,
        title: str | None = None,
    ) -> None:
        await asyncio.sleep(0)
        if self.fail_mux:
            raise RuntimeError("ffmpeg mux exited with 1")
        self.muxed.append((video_path, subtitle_path, output_path, language, title))


class RecordingCleaner(FileCleanerProtocol):
    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.fail = False

    async def delete_files(self, paths: list[str]) -> list[str]:
        self.calls.append(list(paths))
        if self.fail:
            raise OSError("permission denied")
        return list(paths)


class StubBackend(TranslationBackendProtocol):
    """Translates by prefixing text; jobs can be held on a gate or failed."""

    def __init__(self) -> None:
        self.calls: list[JobId] = []
        self.options: list[TranslationOptions] = []
        self.gates: dict[JobId, asyncio.Event] = {}
        self.failures: dict[JobId, Exception] = {}
        self.partial: set[JobId] = set()
        self.cancelled: list[JobId] = []
        self.cancel_all_calls = 0
        self.on_translate: Callable[[JobId], None] | None = None

    async def translate_subtitle_full(
        self,
        subtitle: SubtitleFile,
        prompt: str,
        endpoint: EndpointConfig,
        headers: dict[str, str],
        job_id: JobId,
        options: TranslationOptions,
    ) -> SubtitleTranslationResult:
        self.calls.append(job_id)
        self.options.append(options)
        if self.on_translate is not None:
            self.on_translate(job_id)
        gate = self.gates.get(job_id)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        failure = self.failures.get(job_id)
        if failure is not None:
            raise failure
        total = len(subtitle.entries)
        translated = total - 1 if job_id in self.partial else total
        entries = [
            entry.model_copy(update={"text": f"PT {entry.text}"})
            for entry in subtitle.entries[:translated]
        ]
        return SubtitleTranslationResult(
            file=subtitle.model_copy(update={"entries": entries}),
            progress=TranslationProgress(
                total_entries=total,
                translated_entries=translated,
                last_translated_index=translated - 1,
                is_partial=translated < total,
                can_continue=translated < total,
            ),
        )

    async def cancel_translation(self, job_id: JobId) -> None:
        self.cancelled.append(job_id)

    async def cancel_all_translations(self) -> None:
        self.cancel_all_calls += 1


class StubDetector(LanguageDetectorProtocol):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[str] = []

    async def detect_language(
        self,
        endpoint: EndpointConfig,
        model: str,
        prompt: str,
        headers: dict[str, str],
    ) -> DetectedLanguage:
        self.calls.append(model)
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("model unavailable")
        return DetectedLanguage(
            code="spa", name="Spanish", display_name="Spanish (es-ES)"
        )


@dataclass
class QueueHarness:
    store: QueueStore
    settings: SettingsStore
    subtitles: RecordingSubtitleStore
    media: RecordingMedia
    backend: StubBackend
    cleaner: RecordingCleaner
    detector: StubDetector
    log_sink: RecordingLogSink
    runner: StageRunner
    scheduler: QueueScheduler
    max_active: list[int] = field(default_factory=list)

    async def add(self, *paths: str) -> list[JobRecord]:
        entries = [
            FileEntry(
                name=path.rsplit("/", 1)[-1],
                path=path,
                kind=JobKind.VIDEO
                if path.endswith((".mkv", ".mp4"))
                else JobKind.SUBTITLE,
            )
            for path in paths
        ]
        jobs = await self.scheduler.add_files(entries)
        await self.scheduler.wait_for_track_discovery()
        return jobs

    def job(self, job_id: JobId) -> JobRecord:
        job = self.store.get(job_id)
        assert job is not None
        return job

    def status(self, job_id: JobId) -> JobStatus:
        return JobStatus(self.job(job_id).status)


def build_harness(settings: AppSettings | None = None) -> QueueHarness:
    """Wire a scheduler to recording collaborators."""
    store = QueueStore()
    settings_store = SettingsStore(settings or AppSettings())
    subtitles = RecordingSubtitleStore()
    media = RecordingMedia()
    backend = StubBackend()
    cleaner = RecordingCleaner()
    detector = StubDetector()
    log_sink = RecordingLogSink()
    runner = StageRunner(
        store=store,
        settings=settings_store.snapshot,
        subtitles=subtitles,
        media=media,
        backend=backend,
        cleaner=cleaner,
        language_detector=detector,
        log_sink=log_sink,
        clock=lambda: TIMESTAMP,
    )
    scheduler = QueueScheduler(
        store=store,
        settings=settings_store.snapshot,
        runner=runner,
        media=media,
        backend=backend,
        log_sink=log_sink,
        clock=lambda: TIMESTAMP,
    )
    harness = QueueHarness(
        store=store,
        settings=settings_store,
        subtitles=subtitles,
        media=media,
        backend=backend,
        cleaner=cleaner,
        detector=detector,
        log_sink=log_sink,
        runner=runner,
        scheduler=scheduler,
    )
    store.subscribe(
        lambda snapshot: harness.max_active.append(len(store.active_jobs()))
    )
    return harness


async def wait_until(predicate: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the event loop until predicate holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")
