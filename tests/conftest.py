import os
import threading
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from importer.errors import TranscodeError  # noqa: E402
from importer.transcoder import Transcoder  # noqa: E402

MIB = 1024 * 1024


def write_clip(path: Path, size: int = 20 * MIB, mtime: float | None = None) -> Path:
    """Sparse file of *size* bytes, so big clips cost nothing on disk."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def stream_dir(card: Path) -> Path:
    return card / "PRIVATE" / "AVCHD" / "BDMV" / "STREAM"


@pytest.fixture
def card(tmp_path):
    """An SD card layout with three clips a minute apart."""
    root = tmp_path / "CARD"
    stream = stream_dir(root)
    write_clip(stream / "00000.MTS", mtime=1_700_000_000)
    write_clip(stream / "00001.MTS", mtime=1_700_000_060)
    write_clip(stream / "00002.MTS", mtime=1_700_000_120)
    return root


class FakeTranscoder(Transcoder):
    """Writes a small file per clip; fails the clips named in *failing*."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls: list[tuple[Path, Path]] = []
        self.progress: dict[str, list[float]] = {}

    def convert(self, source, destination, on_progress):
        self.calls.append((source, destination))
        seen = self.progress.setdefault(source.name, [])
        for fraction in (0.0, 0.25, 0.5, 1.0):
            seen.append(fraction)
            on_progress(fraction)
            if source.name in self.failing and fraction == 0.5:
                raise TranscodeError(reason="Invalid data found when processing input")
        destination.write_bytes(b"mp4")


class BlockingTranscoder(Transcoder):
    """Waits on the first clip until cancel() is called."""

    def __init__(self):
        self._cancelled = threading.Event()
        self.converted: list[str] = []

    def convert(self, source, destination, on_progress):
        on_progress(0.1)
        if not self.converted and not self._cancelled.is_set():
            self._cancelled.wait(5)
            self.converted.append(source.name)
            raise TranscodeError.cancelled()
        self.converted.append(source.name)
        destination.write_bytes(b"mp4")

    def cancel(self):
        self._cancelled.set()


@pytest.fixture
def fake_transcoder():
    return FakeTranscoder()
