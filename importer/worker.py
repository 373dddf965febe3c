"""
importer.worker
~~~~~~~~~~~~~~~
QThreads that keep the slow parts of a batch off the orchestrator's thread.

ScanWorker
----------
scanned(list[ClipInfo])     the scan finished (the list may be empty)
scan_failed(str)            no input root could be read

TranscodeWorker
---------------
progress_changed(float)     0.0 – 1.0 as the transcoder advances
clip_finished(object)       None on success, the TranscodeError otherwise

Both only talk to the outside through signals; the orchestrator's queued
connections deliver them on its own thread.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from PySide6.QtCore import QThread, Signal

from importer.errors import ScanError, TranscodeError
from importer.models import ClipInfo
from importer.scanner import scan
from importer.transcoder import Transcoder

logger = logging.getLogger(__name__)


class ScanWorker(QThread):

    scanned     = Signal(object)
    scan_failed = Signal(str)

    def __init__(self, roots: list[Path], parent=None):
        super().__init__(parent)
        self._roots = list(roots)

    def run(self):
        logger.debug("[WORKER] Scan thread started for %d root(s)", len(self._roots))
        try:
            clips = scan(self._roots)
        except ScanError as exc:
            self.scan_failed.emit(exc.message)
            return
        self.scanned.emit(clips)


class TranscodeWorker(QThread):

    progress_changed = Signal(float)
    clip_finished    = Signal(object)

    def __init__(self, transcoder: Transcoder, clip: ClipInfo, destination: Path, parent=None):
        super().__init__(parent)
        self._transcoder  = transcoder
        self._clip        = clip
        self._destination = destination
        self._cancel_requested = threading.Event()
        # the transcoder is shared across clips; a skip aimed at the last one
        # must not carry over
        transcoder.reset_cancel()
        logger.debug("[WORKER] Created for '%s' → '%s'", clip.name, destination.name)

    # ── QThread entry point ───────────────────────────────────────────────────

    def run(self):
        logger.info("[WORKER] Converting '%s'", self._clip.name)
        if self._cancel_requested.is_set():
            logger.info("[WORKER] '%s' skipped before it started", self._clip.name)
            self.clip_finished.emit(TranscodeError.cancelled())
            return
        try:
            self._transcoder.convert(
                self._clip.path, self._destination, self.progress_changed.emit
            )
        except TranscodeError as exc:
            logger.warning("[WORKER] ❌ '%s': %s", self._clip.name, exc.reason)
            self.clip_finished.emit(exc)
            return
        except Exception as exc:
            # nothing may escape a QThread; a broken engine is still one failed clip
            logger.exception("[WORKER] Unexpected error converting '%s'", self._clip.name)
            self.clip_finished.emit(TranscodeError(reason=str(exc) or type(exc).__name__))
            return

        self.clip_finished.emit(None)

    # ── Cancel ────────────────────────────────────────────────────────────────

    def cancel(self):
        logger.info("[WORKER] cancel() called for '%s'", self._clip.name)
        self._cancel_requested.set()
        self._transcoder.cancel()
