"""Ports implemented by adapters around the queue core."""

from subq_core.ports.media import (
    FileCleanerProtocol,
    MediaError,
    MediaErrorCode,
    MediaErrorDetails,
    MediaErrorInfo,
    MediaToolchainProtocol,
)
from subq_core.ports.orchestrator import (
    LogSinkProtocol,
    QueueError,
    QueueErrorCode,
    QueueErrorDetails,
    QueueErrorInfo,
    build_job_log,
    build_queue_log,
)
from subq_core.ports.subtitles import SubtitleStoreProtocol
from subq_core.ports.translation import (
    ErrorHandler,
    LanguageDetectorProtocol,
    ProgressHandler,
    TranslationBackendProtocol,
    TranslationEventSourceProtocol,
    Unsubscribe,
)

__all__ = [
    "ErrorHandler",
    "FileCleanerProtocol",
    "LanguageDetectorProtocol",
    "LogSinkProtocol",
    "MediaError",
    "MediaErrorCode",
    "MediaErrorDetails",
    "MediaErrorInfo",
    "MediaToolchainProtocol",
    "ProgressHandler",
    "QueueError",
    "QueueErrorCode",
    "QueueErrorDetails",
    "QueueErrorInfo",
    "SubtitleStoreProtocol",
    "TranslationBackendProtocol",
    "TranslationEventSourceProtocol",
    "Unsubscribe",
    "build_job_log",
    "build_queue_log",
]
