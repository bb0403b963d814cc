"""ffmpeg/ffprobe adapter for subtitle track discovery, extraction and muxing."""

from __future__ import annotations

import asyncio
import json
import subprocess
from collections.abc import Callable
from pathlib import Path

from subq_core.ports.media import (
    MediaError,
    MediaErrorCode,
    MediaErrorDetails,
    MediaErrorInfo,
    MediaToolchainProtocol,
)
from subq_schemas.subtitles import SubtitleTrack

type CommandRunner = Callable[[list[str]], subprocess.CompletedProcess[bytes]]

_EXTRACT_CODECS = {
    "ass": "ass",
    "ssa": "ass",
    "srt": "srt",
    "vtt": "webvtt",
}


def build_probe_command(ffprobe_bin: str, video_path: str) -> list[str]:
    """Build the ffprobe command listing subtitle streams as JSON."""
    return [
        ffprobe_bin,
        "-v",
        "error",
        "-select_streams",
        "s",
        "-show_entries",
        "stream=index,codec_name,codec_type:stream_tags=language,title",
        "-of",
        "json",
        video_path,
    ]


def build_extract_command(
    ffmpeg_bin: str, video_path: str, track_index: int, output_path: str
) -> list[str]:
    """Build the ffmpeg command writing one subtitle stream to a file.

    The subtitle codec follows the output extension; unknown extensions
    keep the source codec.

    Returns:
        list[str]: Command line arguments.
    """
    extension = Path(output_path).suffix.lower().lstrip(".") or "srt"
    codec = _EXTRACT_CODECS.get(extension, "copy")
    return [
        ffmpeg_bin,
        "-y",
        "-i",
        video_path,
        "-map",
        f"0:s:{track_index}",
        "-c:s",
        codec,
        output_path,
    ]


def build_mux_command(
    ffmpeg_bin: str,
    video_path: str,
    subtitle_path: str,
    output_path: str,
    language: str | None = None,
    title: str | None = None,
) -> list[str]:
    """Build the ffmpeg command adding a subtitle as the default track.

    Video and audio are copied. The new subtitle becomes subtitle stream 0
    and existing subtitle streams follow it.

    Returns:
        list[str]: Command line arguments.
    """
    command = [
        ffmpeg_bin,
        "-y",
        "-i",
        video_path,
        "-i",
        subtitle_path,
        "-map",
        "0:v",
        "-map",
        "0:a?",
        "-map",
        "1:s",
        "-map",
        "0:s?",
        "-c:v",
        "copy",
        "-c:a",
        "copy",
        "-c:s",
        "ass",
        "-disposition:s:0",
        "default",
    ]
    if language:
        command.extend(["-metadata:s:s:0", f"language={language}"])
    if title:
        command.extend(["-metadata:s:s:0", f"title={title}"])
    command.append(output_path)
    return command


def parse_probe_output(payload: str) -> list[SubtitleTrack]:
    """Parse ffprobe JSON output into subtitle tracks.

    Args:
        payload: ffprobe stdout.

    Returns:
        list[SubtitleTrack]: Subtitle streams numbered in container order.

    Raises:
        ValueError: If the payload is not ffprobe JSON.
    """
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("ffprobe output must be a JSON object")
    tracks: list[SubtitleTrack] = []
    for stream in data.get("streams", []):
        if stream.get("codec_type") != "subtitle":
            continue
        tags = stream.get("tags") or {}
        tracks.append(
            SubtitleTrack(
                index=len(tracks),
                stream_index=stream.get("index"),
                codec=stream.get("codec_name") or "unknown",
                language=tags.get("language"),
                title=tags.get("title"),
            )
        )
    return tracks


class FfmpegToolchain(MediaToolchainProtocol):
    """Media toolchain backed by the ffmpeg and ffprobe executables."""

    def __init__(
        self,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize the toolchain.

        Args:
            ffmpeg_bin: ffmpeg executable name or path.
            ffprobe_bin: ffprobe executable name or path.
            runner: Blocking command runner, subprocess based by default.
        """
        self._ffmpeg = ffmpeg_bin
        self._ffprobe = ffprobe_bin
        self._runner = runner or _run_command

    async def list_subtitle_tracks(self, video_path: str) -> list[SubtitleTrack]:
        """List the subtitle streams of a video.

        Raises:
            MediaError: If ffprobe fails or prints unexpected output.
        """
        result = await self._run(build_probe_command(self._ffprobe, video_path))
        self._check(result, self._ffprobe, video_path, "ffprobe failed")
        try:
            return parse_probe_output(result.stdout.decode("utf-8", "replace"))
        except ValueError as exc:
            raise MediaError(
                MediaErrorInfo(
                    code=MediaErrorCode.PARSE_FAILED,
                    message=f"Failed to parse ffprobe output: {exc}",
                    details=MediaErrorDetails(
                        tool=self._ffprobe, path=video_path, reason=str(exc)
                    ),
                )
            ) from exc

    async def extract_subtitle_track(
        self, video_path: str, track_index: int, output_path: str
    ) -> None:
        """Write one subtitle stream of a video to output_path.

        Raises:
            MediaError: If ffmpeg fails.
        """
        command = build_extract_command(
            self._ffmpeg, video_path, track_index, output_path
        )
        result = await self._run(command)
        self._check(result, self._ffmpeg, video_path, "ffmpeg extraction failed")

    async def mux_subtitle_to_video(
        self,
        video_path: str,
        subtitle_path: str,
        output_path: str,
        language: str | None = None,
        title: str | None = None,
    ) -> None:
        """Write a copy of the video with the subtitle as its default track.

        Raises:
            MediaError: If ffmpeg fails.
        """
        command = build_mux_command(
            self._ffmpeg, video_path, subtitle_path, output_path, language, title
        )
        result = await self._run(command)
        self._check(result, self._ffmpeg, video_path, "ffmpeg muxing failed")

    async def check_ffmpeg(self) -> str:
        """Return the first line of ``ffmpeg -version``.

        Raises:
            MediaError: If ffmpeg is not installed.
        """
        result = await self._run([self._ffmpeg, "-version"])
        lines = result.stdout.decode("utf-8", "replace").splitlines()
        return lines[0] if lines else "FFmpeg installed"

    async def _run(self, command: list[str]) -> subprocess.CompletedProcess[bytes]:
        try:
            return await asyncio.to_thread(self._runner, command)
        except FileNotFoundError as exc:
            raise MediaError(
                MediaErrorInfo(
                    code=MediaErrorCode.TOOL_MISSING,
                    message=(
                        f"{command[0]} not found. Install FFmpeg and ensure it "
                        "is on PATH."
                    ),
                    details=MediaErrorDetails(tool=command[0], reason=str(exc)),
                )
            ) from exc

    @staticmethod
    def _check(
        result: subprocess.CompletedProcess[bytes],
        tool: str,
        path: str,
        message: str,
    ) -> None:
        if result.returncode == 0:
            return
        stderr = result.stderr.decode("utf-8", "replace").strip()
        raise MediaError(
            MediaErrorInfo(
                code=MediaErrorCode.COMMAND_FAILED,
                message=f"{message}: {stderr}" if stderr else message,
                details=MediaErrorDetails(
                    tool=tool,
                    path=path,
                    exit_code=result.returncode,
                    reason=stderr or None,
                ),
            )
        )


def _run_command(command: list[str]) -> subprocess.CompletedProcess[bytes]:
    return subprocess.run(
        command, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False
    )
