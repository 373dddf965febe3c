"""
importer.errors
~~~~~~~~~~~~~~~
Exceptions raised by the importer core.

Only ScanError and OutputError can end a batch. TranscodeError is always
scoped to a single clip and gets recorded, never propagated past the
orchestrator.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ImportErrorBase(Exception):
    """Base exception for every importer failure."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ScanError(ImportErrorBase):
    """No usable input root, or a single root that could not be read."""
    def __init__(self, message: str, root: Path | None = None):
        super().__init__(message)
        self.root = root


# ── Output directory ──────────────────────────────────────────────────────────

class OutputErrorKind(Enum):
    CANNOT_LOCATE_DEFAULT_BASE = "cannot_locate_default_base"
    PERMISSION_DENIED          = "permission_denied"
    OTHER                      = "other"


class OutputError(ImportErrorBase):
    def __init__(self, message: str, kind: OutputErrorKind = OutputErrorKind.OTHER,
                 path: Path | None = None):
        super().__init__(message)
        self.kind = kind
        self.path = path

    @property
    def recoverable(self) -> bool:
        """True when asking the user for another base folder may help."""
        return self.kind in (
            OutputErrorKind.CANNOT_LOCATE_DEFAULT_BASE,
            OutputErrorKind.PERMISSION_DENIED,
        )


# ── Transcoding ───────────────────────────────────────────────────────────────

class TranscodeErrorKind(Enum):
    FAILED             = "failed"
    CANCELLED          = "cancelled"
    UNSUPPORTED_OUTPUT = "unsupported_output"


_DEFAULT_REASONS = {
    TranscodeErrorKind.FAILED:             "The export failed unexpectedly.",
    TranscodeErrorKind.CANCELLED:          "The export was cancelled.",
    TranscodeErrorKind.UNSUPPORTED_OUTPUT: "MP4 export is not supported for this clip.",
}


class TranscodeError(ImportErrorBase):
    def __init__(self, kind: TranscodeErrorKind = TranscodeErrorKind.FAILED,
                 reason: str | None = None, command=None, output=None):
        super().__init__(reason or _DEFAULT_REASONS[kind])
        self.kind = kind
        self.command = command
        self.output = output

    @property
    def reason(self) -> str:
        return self.message

    @classmethod
    def cancelled(cls) -> TranscodeError:
        return cls(TranscodeErrorKind.CANCELLED)

    @classmethod
    def unsupported_output(cls, reason: str | None = None) -> TranscodeError:
        return cls(TranscodeErrorKind.UNSUPPORTED_OUTPUT, reason)
