"""subq-core: translation queue orchestration."""

from subq_core.bridge import EventBridge
from subq_core.intake import build_file_entries, classify_path
from subq_core.ports import (
    QueueError,
    QueueErrorCode,
    QueueErrorDetails,
    QueueErrorInfo,
    build_job_log,
    build_queue_log,
)
from subq_core.scheduler import QueueScheduler
from subq_core.settings import SettingsError, SettingsStore, load_settings
from subq_core.stages import StageRunner
from subq_core.store import QueueStore

__version__ = "0.1.0"

__all__ = [
    "EventBridge",
    "QueueError",
    "QueueErrorCode",
    "QueueErrorDetails",
    "QueueErrorInfo",
    "QueueScheduler",
    "QueueStore",
    "SettingsError",
    "SettingsStore",
    "StageRunner",
    "__version__",
    "build_file_entries",
    "build_job_log",
    "build_queue_log",
    "classify_path",
    "load_settings",
]
