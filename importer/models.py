"""
importer.models
~~~~~~~~~~~~~~~
Plain dataclasses with no Qt and no I/O.
These travel freely between the importer core and the ui.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from pathlib import Path


# ── Enums ─────────────────────────────────────────────────────────────────────

class ImportPhase(Enum):
    IDLE       = auto()  # nothing running, ready for a drop
    SCANNING   = auto()  # walking the input roots for clips
    CONVERTING = auto()  # clips found, converting one at a time
    COMPLETED  = auto()  # every clip attempted (some may have failed)
    FAILED     = auto()  # batch aborted before conversion


# ── Scan result ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ClipInfo:
    """One discovered source clip. `path` is resolved and unique per scan."""
    path: Path
    size: int                      # bytes
    modified: float                # POSIX timestamp

    @property
    def name(self) -> str:
        return self.path.name


# ── Probe result (returned by importer.probe) ─────────────────────────────────

@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""
    path: Path
    duration_seconds: float        # 0.0 if unknown
    width: int  = 0
    height: int = 0
    video_codec: str = ""
    audio_codec: str = ""
    has_video: bool = False


# ── Per-clip failure ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ConversionError:
    clip_name: str
    reason: str

    def __str__(self) -> str:
        return f"{self.clip_name}: {self.reason}"


# ── Batch state ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImportState:
    """
    Snapshot of the orchestrator's state machine.

    Only the fields that belong to the active phase are meaningful:

        CONVERTING  processed_count, total_count, current_clip, clip_progress
        COMPLETED   output_folder, errors, total_count
        FAILED      message

    A new snapshot is built for every transition, so a value handed to an
    observer never changes underneath it.
    """
    phase: ImportPhase = ImportPhase.IDLE
    processed_count: int = 0
    total_count: int = 0
    current_clip: ClipInfo | None = None
    clip_progress: float = 0.0     # 0.0 – 1.0
    output_folder: Path | None = None
    errors: tuple[ConversionError, ...] = field(default_factory=tuple)
    message: str = ""

    # ── Constructors ──────────────────────────────────────────────────────────

    @classmethod
    def idle(cls) -> ImportState:
        return cls()

    @classmethod
    def scanning(cls) -> ImportState:
        return cls(phase=ImportPhase.SCANNING)

    @classmethod
    def failed(cls, message: str) -> ImportState:
        return cls(phase=ImportPhase.FAILED, message=message)

    def evolve(self, **changes) -> ImportState:
        return replace(self, **changes)

    # ── Derived values ────────────────────────────────────────────────────────

    @property
    def overall_progress(self) -> float:
        if self.total_count <= 0:
            return 0.0
        progress = (self.processed_count + self.clip_progress) / self.total_count
        return min(max(progress, 0.0), 1.0)

    @property
    def success_count(self) -> int:
        return max(self.total_count - len(self.errors), 0)

    @property
    def is_busy(self) -> bool:
        return self.phase in (ImportPhase.SCANNING, ImportPhase.CONVERTING)

    @property
    def can_reset(self) -> bool:
        return self.phase in (ImportPhase.COMPLETED, ImportPhase.FAILED)
