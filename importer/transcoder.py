"""
importer.transcoder
~~~~~~~~~~~~~~~~~~~
The boundary to the conversion engine.

Transcoder is the contract the orchestrator relies on:

    convert(source, destination, on_progress)   blocks until done
    cancel()                                     may be called from any thread
    reset_cancel()                               called before each new clip

`on_progress` receives fractions in 0.0 – 1.0 on the calling thread. They
never go backwards for a given clip. A failed or cancelled conversion never
leaves a file at `destination`. A cancel that arrives before convert()
starts still applies to it.

FfmpegTranscoder drives the ffmpeg CLI and writes to a hidden `.part`
sibling first, renaming it into place only once ffmpeg has succeeded.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Callable

from importer.command_builder import build_transcode_command, command_as_string
from importer.errors import TranscodeError, TranscodeErrorKind
from importer.paths import FFMPEG_BIN, FFPROBE_BIN
from importer.probe import probe, supports_mp4_output

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class Transcoder(ABC):

    @abstractmethod
    def convert(self, source: Path, destination: Path, on_progress: ProgressCallback) -> None:
        """Convert *source* into *destination*; raise TranscodeError on failure."""

    def cancel(self) -> None:
        """Abort the conversion in flight, if any."""

    def reset_cancel(self) -> None:
        """Forget a cancel left over from an earlier clip."""


class MonotonicProgress:
    """Wraps a progress callback so it only ever sees clamped, rising values."""

    def __init__(self, callback: ProgressCallback):
        self._callback = callback
        self._last = -1.0

    def __call__(self, fraction: float) -> None:
        fraction = min(max(fraction, 0.0), 1.0)
        if fraction <= self._last:
            return
        self._last = fraction
        self._callback(fraction)

    @property
    def last(self) -> float:
        return max(self._last, 0.0)


def partial_path_for(destination: Path) -> Path:
    """Hidden sibling ffmpeg writes into until the conversion succeeds."""
    return destination.with_name(f".{destination.name}.part")


# ── ffmpeg implementation ─────────────────────────────────────────────────────

class FfmpegTranscoder(Transcoder):

    def __init__(self, ffmpeg: Path = FFMPEG_BIN, ffprobe: Path = FFPROBE_BIN):
        self.ffmpeg  = Path(ffmpeg)
        self.ffprobe = Path(ffprobe)
        self._process: subprocess.Popen | None = None
        self._lock = threading.Lock()
        self._cancelled = threading.Event()

    def convert(self, source: Path, destination: Path, on_progress: ProgressCallback) -> None:
        if self._cancelled.is_set():
            raise TranscodeError.cancelled()
        report = MonotonicProgress(on_progress)

        try:
            supported = supports_mp4_output(self.ffmpeg)
        except OSError as exc:
            raise TranscodeError(reason=f"ffmpeg could not be started: {exc}") from exc
        if not supported:
            raise TranscodeError.unsupported_output(
                "This ffmpeg build cannot write H.264 MP4 files."
            )

        duration = self._inspect(source)

        partial = partial_path_for(destination)
        cmd = build_transcode_command(source, partial, self.ffmpeg)
        logger.debug("[TRANSCODER] Command: %s", command_as_string(cmd))

        report(0.0)
        try:
            self._run_ffmpeg(cmd, duration, report, source.name)
            if self._cancelled.is_set():
                raise TranscodeError.cancelled()
            try:
                os.replace(partial, destination)
            except OSError as exc:
                raise TranscodeError(
                    reason=f"Could not move the finished file into place: {exc}"
                ) from exc
        except TranscodeError:
            _remove_quietly(partial)
            raise

        report(1.0)
        logger.info("[TRANSCODER] ✅ '%s' → '%s'", source.name, destination.name)

    def cancel(self) -> None:
        self._cancelled.set()
        with self._lock:
            process = self._process
        if process and process.poll() is None:
            logger.info("[TRANSCODER] Terminating ffmpeg (PID %s)", process.pid)
            process.terminate()

    def reset_cancel(self) -> None:
        self._cancelled.clear()

    # ── Internal ──────────────────────────────────────────────────────────────

    def _inspect(self, source: Path) -> float:
        """
        Duration of *source* in seconds, 0.0 when ffprobe can't tell.
        A file ffprobe reads fine but finds no picture in fails here, before
        ffmpeg is started.
        """
        try:
            info = probe(source, self.ffprobe)
        except (OSError, RuntimeError, ValueError) as exc:
            # ffmpeg reports the real problem, if there is one
            logger.warning("[TRANSCODER] Could not probe '%s': %s", source.name, exc)
            return 0.0

        if not info.has_video:
            raise TranscodeError(reason=f"No video stream found in {source.name}.")

        logger.debug("[TRANSCODER] '%s': %s %dx%d, audio %s, %.2fs",
                     source.name, info.video_codec or "?", info.width, info.height,
                     info.audio_codec or "none", info.duration_seconds)
        return info.duration_seconds

    def _run_ffmpeg(self, cmd: list[str], duration: float,
                    report: MonotonicProgress, clip_name: str) -> None:
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise TranscodeError(reason=f"ffmpeg could not be started: {exc}",
                                 command=cmd) from exc

        with self._lock:
            self._process = process
        if self._cancelled.is_set():
            process.terminate()

        # ffmpeg writes its log to stderr; drain it so the pipe never fills up
        # and blocks ffmpeg while we are reading stdout
        stderr_tail: deque[str] = deque(maxlen=20)

        def _drain_stderr():
            for line in process.stderr:
                stripped = line.rstrip()
                if stripped:
                    stderr_tail.append(stripped)

        stderr_thread = threading.Thread(target=_drain_stderr, daemon=True)
        stderr_thread.start()

        try:
            for line in process.stdout:
                fraction = parse_progress_line(line.strip(), duration)
                if fraction is not None:
                    report(fraction)
        finally:
            stderr_thread.join()
            process.wait()
            with self._lock:
                self._process = None

        logger.debug("[TRANSCODER] ffmpeg exited with code %s for '%s'",
                     process.returncode, clip_name)

        if self._cancelled.is_set():
            raise TranscodeError.cancelled()
        if process.returncode != 0:
            detail = stderr_tail[-1] if stderr_tail else "no error output"
            raise TranscodeError(
                TranscodeErrorKind.FAILED,
                f"ffmpeg exited with code {process.returncode}: {detail}",
                command=cmd,
                output="\n".join(stderr_tail),
            )


# ── Progress line parser ───────────────────────────────────────────────────────

def parse_progress_line(line: str, duration: float) -> float | None:
    """
    Turn one `-progress` line into a fraction of *duration*.

    Only `out_time_us=` and `out_time=` lines carry a position; everything
    else (and "N/A" values) yields None.
    """
    if duration <= 0 or "=" not in line:
        return None

    key, value = line.split("=", 1)
    if key == "out_time_us":
        try:
            seconds = int(value) / 1_000_000
        except ValueError:
            return None
    elif key == "out_time":
        seconds = _hhmmss_to_seconds(value)
        if seconds is None:
            return None
    else:
        return None

    return min(max(seconds / duration, 0.0), 1.0)


def _hhmmss_to_seconds(time_str: str) -> float | None:
    try:
        h, m, s = time_str.split(":")
        return int(h) * 3600 + int(m) * 60 + float(s)
    except ValueError:
        return None


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("[TRANSCODER] Could not remove partial file '%s': %s", path, exc)
