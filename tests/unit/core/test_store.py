"""Unit tests for the queue store."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from subq_core.store import QueueStore
from subq_schemas.jobs import FileEntry, JobRecord, QueueSnapshot
from subq_schemas.primitives import JobKind, JobStatus


def _job(name: str, kind: JobKind = JobKind.SUBTITLE) -> JobRecord:
    return JobRecord.from_entry(
        uuid4(), FileEntry(name=name, path=f"/tmp/{name}", kind=kind)
    )


def _store(*names: str) -> tuple[QueueStore, list[JobRecord]]:
    store = QueueStore()
    jobs = [_job(name) for name in names]
    store.append_jobs(jobs)
    return store, jobs


@pytest.mark.unit
def test_append_preserves_order_and_notifies() -> None:
    """Appended jobs keep their order and listeners see the new snapshot."""
    store = QueueStore()
    seen: list[QueueSnapshot] = []
    store.subscribe(seen.append)
    jobs = [_job("a.srt"), _job("b.srt")]

    store.append_jobs(jobs)

    assert [job.id for job in store.snapshot.jobs] == [job.id for job in jobs]
    assert seen == [store.snapshot]


@pytest.mark.unit
def test_unsubscribe_stops_notifications() -> None:
    """Unsubscribed listeners receive nothing further."""
    store, _ = _store("a.srt")
    seen: list[QueueSnapshot] = []
    unsubscribe = store.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    store.set_flags(is_translating=True)

    assert seen == []


@pytest.mark.unit
def test_video_jobs_start_loading_tracks() -> None:
    """Video jobs are created with track discovery in flight."""
    job = _job("movie.mkv", JobKind.VIDEO)

    assert job.status == JobStatus.PENDING
    assert job.is_loading_tracks is True
    assert job.selected_track_index is None


@pytest.mark.unit
def test_move_job_reorders_and_validates_indexes() -> None:
    """Moving a job shifts the others; bad indexes raise."""
    store, jobs = _store("a.srt", "b.srt", "c.srt")

    store.move_job(0, 2)

    assert [job.name for job in store.snapshot.jobs] == ["b.srt", "c.srt", "a.srt"]
    with pytest.raises(IndexError):
        store.move_job(3, 0)
    with pytest.raises(IndexError):
        store.move_job(0, -1)
    assert len(store.snapshot.jobs) == len(jobs)


@pytest.mark.unit
def test_set_status_keeps_error_only_for_error_status() -> None:
    """Error messages are stored for failures and cleared otherwise."""
    store, [job] = _store("a.srt")

    assert store.set_status(job.id, JobStatus.ERROR, error="boom")
    assert store.snapshot.jobs[0].error == "boom"
    assert store.set_status(job.id, JobStatus.PENDING, error="ignored")
    assert store.snapshot.jobs[0].error is None


@pytest.mark.unit
def test_cancelled_jobs_reject_later_writes() -> None:
    """Once cancelled, a job ignores status changes and patches."""
    store, [job] = _store("a.srt")
    store.set_status(job.id, JobStatus.CANCELLED)

    assert store.set_status(job.id, JobStatus.COMPLETED) is False
    assert store.update_job(job.id, progress=50.0) is False
    assert store.set_status(job.id, JobStatus.CANCELLED) is True
    assert store.snapshot.jobs[0].status == JobStatus.CANCELLED
    assert store.snapshot.jobs[0].progress == 0.0


@pytest.mark.unit
def test_update_job_rejects_status_fields() -> None:
    """Status and error go through set_status only."""
    store, [job] = _store("a.srt")

    with pytest.raises(ValueError, match="set_status"):
        store.update_job(job.id, status=JobStatus.COMPLETED)


@pytest.mark.unit
def test_update_job_rejects_unknown_fields() -> None:
    """Misspelled fields raise instead of being stored."""
    store, [job] = _store("a.srt")
    before = store.snapshot

    with pytest.raises(ValueError, match="selected_track"):
        store.update_job(job.id, selected_track=1)

    assert store.snapshot is before


@pytest.mark.unit
@pytest.mark.parametrize(
    "changes",
    [
        {"selected_track_index": -3},
        {"progress": 120.0},
        {"total_lines": 2, "translated_lines": 10},
    ],
)
def test_update_job_validates_patched_record(changes: dict[str, object]) -> None:
    """Patches that break job validation leave the snapshot unchanged."""
    store, [job] = _store("a.srt")
    before = store.snapshot

    with pytest.raises(ValidationError):
        store.update_job(job.id, **changes)

    assert store.snapshot is before
    assert store.get(job.id) == job


@pytest.mark.unit
def test_update_job_keeps_enum_fields_after_revalidation() -> None:
    """Valid patches keep status and kind intact."""
    store = QueueStore()
    job = _job("movie.mkv", JobKind.VIDEO)
    store.append_jobs([job])
    store.set_status(job.id, JobStatus.EXTRACTING)

    assert store.update_job(job.id, selected_track_index=2, total_lines=4) is True

    updated = store.get(job.id)
    assert updated is not None
    assert updated.status == JobStatus.EXTRACTING
    assert updated.kind == JobKind.VIDEO
    assert updated.selected_track_index == 2
    assert updated.total_lines == 4


@pytest.mark.unit
def test_updates_for_missing_jobs_are_ignored() -> None:
    """Writes for unknown ids change nothing."""
    store, _ = _store("a.srt")
    before = store.snapshot

    assert store.set_status(uuid4(), JobStatus.ERROR) is False
    assert store.update_job(uuid4(), progress=10.0) is False
    assert store.apply_progress(uuid4(), 10.0, 1, 3) is False
    assert store.remove_job(uuid4()) is None
    assert store.snapshot is before


@pytest.mark.unit
def test_apply_progress_is_monotonic_and_bounded() -> None:
    """Progress never moves backwards and lines never exceed the total."""
    store, [job] = _store("a.srt")
    store.set_status(job.id, JobStatus.TRANSLATING)

    store.apply_progress(job.id, 40.0, 4, 10)
    store.apply_progress(job.id, 20.0, 2, 10)
    record = store.snapshot.jobs[0]
    assert (record.progress, record.translated_lines) == (40.0, 4)

    store.apply_progress(job.id, 150.0, 12, 10)
    record = store.snapshot.jobs[0]
    assert record.progress == 100.0
    assert record.translated_lines == 10
    assert record.total_lines == 10


@pytest.mark.unit
def test_apply_progress_ignores_inactive_jobs() -> None:
    """Pending and terminal jobs drop progress reports."""
    store, [pending, done] = _store("a.srt", "b.srt")
    store.set_status(done.id, JobStatus.COMPLETED)

    assert store.apply_progress(pending.id, 50.0, 1, 2) is False
    assert store.apply_progress(done.id, 50.0, 1, 2) is False


@pytest.mark.unit
def test_remove_current_job_clears_focus() -> None:
    """Removing the focused job clears the focus pointer."""
    store, [first, second] = _store("a.srt", "b.srt")
    store.set_current(first.id)

    removed = store.remove_job(first.id)

    assert removed is not None
    assert removed.id == first.id
    assert store.snapshot.current_file_id is None
    assert [job.id for job in store.snapshot.jobs] == [second.id]


@pytest.mark.unit
def test_status_queries() -> None:
    """Pending, active and count queries reflect job statuses."""
    store, [a, b, c] = _store("a.srt", "b.srt", "c.srt")
    store.set_status(b.id, JobStatus.MUXING)
    store.set_status(c.id, JobStatus.ERROR, error="x")
    store.set_current(b.id)

    assert [job.id for job in store.pending_jobs()] == [a.id]
    assert [job.id for job in store.active_jobs()] == [b.id]
    assert store.is_processing() is True
    assert store.is_terminal(c.id) is True
    assert store.is_terminal(a.id) is False
    assert store.is_terminal(uuid4()) is True
    counts = store.status_counts()
    assert counts[JobStatus.PENDING] == 1
    assert counts[JobStatus.ERROR] == 1
    assert counts[JobStatus.COMPLETED] == 0
    current = store.current_file()
    assert current is not None
    assert current.id == b.id


@pytest.mark.unit
def test_clear_and_flags() -> None:
    """Clearing empties the queue; flags change independently."""
    store, [job] = _store("a.srt")
    store.set_current(job.id)
    store.set_flags(is_translating=True)
    store.set_flags(is_paused=True)

    store.clear()

    snapshot = store.snapshot
    assert snapshot.jobs == []
    assert snapshot.current_file_id is None
    assert snapshot.is_translating is True
    assert snapshot.is_paused is True
