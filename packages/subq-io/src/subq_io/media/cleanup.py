"""Filesystem cleanup of intermediate subtitle files."""

from __future__ import annotations

import asyncio
from pathlib import Path

from subq_core.ports.media import (
    FileCleanerProtocol,
    MediaError,
    MediaErrorCode,
    MediaErrorDetails,
    MediaErrorInfo,
)


class FileSystemCleaner(FileCleanerProtocol):
    """Deletes files from the local filesystem."""

    async def delete_files(self, paths: list[str]) -> list[str]:
        """Delete every path, attempting all of them before reporting failures.

        Args:
            paths: Files to delete.

        Returns:
            list[str]: Paths that were deleted.

        Raises:
            MediaError: If any path could not be deleted.
        """
        return await asyncio.to_thread(_delete_files, list(paths))


def _delete_files(paths: list[str]) -> list[str]:
    deleted: list[str] = []
    failures: list[str] = []
    failed_paths: list[str] = []
    for path in paths:
        try:
            Path(path).unlink()
        except OSError as exc:
            failures.append(f"{path}: {exc}")
            failed_paths.append(path)
            continue
        deleted.append(path)
    if failures:
        raise MediaError(
            MediaErrorInfo(
                code=MediaErrorCode.CLEANUP_FAILED,
                message="Failed to delete files: " + "; ".join(failures),
                details=MediaErrorDetails(failed_paths=failed_paths),
            )
        )
    return deleted
