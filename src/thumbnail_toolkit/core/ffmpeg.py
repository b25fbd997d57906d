"""FFmpeg integration and utilities."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from ..config.constants import FFMPEG_TIMEOUT, FFPROBE_TIMEOUT, MAX_PROBE_CACHE_ENTRIES
from .base import ProcessingError

if TYPE_CHECKING:
    from pathlib import Path

LOG = logging.getLogger(__name__)


class FFmpegError(ProcessingError):
    """FFmpeg-specific error."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        return_code: int | None = None,
        stderr: str | None = None,
        file_path: Path | None = None,
    ) -> None:
        """Initialize FFmpeg error with detailed context."""
        super().__init__(message, file_path=file_path)
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class ProbeError(FFmpegError):
    """ffprobe failed or returned an unusable duration."""


@dataclass(frozen=True)
class MediaInfo:
    """What the video pipeline needs to know about a source."""

    duration: float
    has_audio: bool


def _parse_duration(value: object) -> float | None:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


class FFmpegProbe:
    """FFmpeg probe utility for media file analysis with caching."""

    # Keyed by (path, mtime) so a rewritten file is probed again; least recently used entries are evicted
    _probe_cache: ClassVar[OrderedDict[tuple[Path, float], dict[str, Any]]] = OrderedDict()
    _cache_lock: ClassVar[threading.Lock] = threading.Lock()
    max_cache_entries: ClassVar[int] = MAX_PROBE_CACHE_ENTRIES

    @staticmethod
    def check_availability() -> None:
        """Check if FFmpeg tools are available."""
        required = ["ffmpeg", "ffprobe"]
        missing = [exe for exe in required if not shutil.which(exe)]

        if missing:
            error_msg = f"Missing FFmpeg executables: {', '.join(missing)}"
            LOG.error(error_msg)
            raise FFmpegError(error_msg)

    @classmethod
    def _get_cache_key(cls, file_path: Path) -> tuple[Path, float]:
        """Generate cache key based on file path and modification time."""
        try:
            mtime = file_path.stat().st_mtime
        except OSError:
            # File doesn't exist or other error - return uncacheable key
            return (file_path, -1.0)
        else:
            return (file_path, mtime)

    @classmethod
    def clear_cache(cls) -> None:
        with cls._cache_lock:
            cls._probe_cache.clear()

    @classmethod
    def _cached(cls, cache_key: tuple[Path, float]) -> dict[str, Any] | None:
        with cls._cache_lock:
            probe_data = cls._probe_cache.get(cache_key)
            if probe_data is not None:
                cls._probe_cache.move_to_end(cache_key)
            return probe_data

    @classmethod
    def _remember(cls, cache_key: tuple[Path, float], probe_data: dict[str, Any]) -> None:
        with cls._cache_lock:
            cls._probe_cache[cache_key] = probe_data
            cls._probe_cache.move_to_end(cache_key)
            while len(cls._probe_cache) > cls.max_cache_entries:
                cls._probe_cache.popitem(last=False)

    @classmethod
    def probe_media(cls, file_path: Path) -> dict[str, Any]:
        """Probe media file for format and stream metadata with caching."""
        cache_key = cls._get_cache_key(file_path)
        if cache_key[1] >= 0:
            cached = cls._cached(cache_key)
            if cached is not None:
                return cached

        cls.check_availability()

        cmd = [
            "ffprobe",
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(file_path),
        ]

        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=FFPROBE_TIMEOUT,
                encoding="utf-8",
                errors="replace",
            )
            probe_data = json.loads(result.stdout)
        except subprocess.CalledProcessError as e:
            error_details = e.stderr or e.stdout or "No error output"
            msg = f"ffprobe failed for {file_path}: {error_details.strip()}"
            raise ProbeError(
                msg,
                command=cmd,
                return_code=e.returncode,
                file_path=file_path,
                stderr=e.stderr,
            ) from e
        except subprocess.TimeoutExpired as e:
            msg = f"ffprobe timed out for {file_path}"
            raise ProbeError(msg, command=cmd, file_path=file_path) from e
        except OSError as e:
            msg = f"Could not run ffprobe for {file_path}: {e}"
            raise ProbeError(msg, command=cmd, file_path=file_path) from e
        except json.JSONDecodeError as e:
            msg = f"Invalid JSON from ffprobe for {file_path}: {e}"
            raise ProbeError(msg, command=cmd, file_path=file_path) from e

        if not isinstance(probe_data, dict):
            msg = f"Unexpected ffprobe output for {file_path}"
            raise ProbeError(msg, command=cmd, file_path=file_path)

        if cache_key[1] >= 0:
            cls._remember(cache_key, probe_data)
        return probe_data

    @classmethod
    def get_media_info(cls, file_path: Path) -> MediaInfo:
        """Get the duration (seconds) and audio presence of a video."""
        data = cls.probe_media(file_path)
        streams = data.get("streams") or []
        format_info = data.get("format") or {}

        duration = _parse_duration(format_info.get("duration"))
        if duration is None:
            # Some containers only report duration on the stream
            video_streams = [s for s in streams if s.get("codec_type") == "video"]
            if video_streams:
                duration = _parse_duration(video_streams[0].get("duration"))

        if duration is None:
            msg = f"ffprobe reported no parseable duration for {file_path}"
            raise ProbeError(msg, file_path=file_path)
        if duration <= 0:
            msg = f"ffprobe reported non-positive duration {duration} for {file_path}"
            raise ProbeError(msg, file_path=file_path)

        has_audio = any(s.get("codec_type") == "audio" for s in streams)
        return MediaInfo(duration=duration, has_audio=has_audio)


class FFmpegProcessor:
    """FFmpeg command executor with error handling."""

    def __init__(self, timeout: int = FFMPEG_TIMEOUT) -> None:
        """Initialize FFmpeg processor with timeout."""
        self.timeout = timeout

    def run_command(self, command: list[str], file_path: Path | None = None) -> subprocess.CompletedProcess:
        """Run FFmpeg command with proper error handling."""
        FFmpegProbe.check_availability()

        LOG.info("Running FFmpeg command: %s", " ".join(command))
        start_time = time.time()

        try:
            result = subprocess.run(  # noqa: S603
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
                check=False,  # We'll handle return code ourselves
                encoding="utf-8",
                errors="replace",
            )
        except subprocess.TimeoutExpired as e:
            msg = f"FFmpeg command timed out after {self.timeout}s"
            raise FFmpegError(msg, command=command, file_path=file_path) from e
        except OSError as e:
            msg = f"Could not run FFmpeg: {e}"
            raise FFmpegError(msg, command=command, file_path=file_path) from e

        LOG.debug("FFmpeg command completed in %.2fs", time.time() - start_time)
        if result.returncode != 0:
            self._handle_ffmpeg_error(result, command, file_path)
        return result

    def _handle_ffmpeg_error(
        self, result: subprocess.CompletedProcess, command: list[str], file_path: Path | None
    ) -> None:
        """Handle FFmpeg command error by raising appropriate exception."""
        error_msg = f"FFmpeg failed with return code {result.returncode}"
        if result.stderr:
            error_msg += f": {result.stderr.strip()}"

        raise FFmpegError(
            error_msg,
            command=command,
            return_code=result.returncode,
            stderr=result.stderr,
            file_path=file_path,
        )
