"""
importer.orchestrator
~~~~~~~~~~~~~~~~~~~~~
ImportOrchestrator runs one import batch at a time:

    IDLE → SCANNING → CONVERTING → COMPLETED
                  ↘ FAILED     (scan error, nothing found, no output folder)
    any idle or finished state → FAILED   (a drop with no local paths)

It lives on the Qt main thread and is the only code that changes the
batch state. Scanning and each clip's conversion run on worker threads and
report back through queued signals, so every state change happens here.

Signals
-------
state_changed(ImportState)   after every transition and progress update
batch_finished(str)          once per completed batch, notification text
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from PySide6.QtCore import QObject, Signal

from importer.access import ScopedAccess
from importer.errors import OutputError, TranscodeError
from importer.models import ClipInfo, ConversionError, ImportPhase, ImportState
from importer.output import OutputPlan, ensure_output_directory
from importer.paths import default_pictures_dir
from importer.summary import (
    NO_CLIPS_MESSAGE,
    NO_OUTPUT_SELECTED_MESSAGE,
    NO_READABLE_DROP_MESSAGE,
    notification_text,
    output_failed_message,
    scan_failed_message,
)
from importer.transcoder import Transcoder
from importer.worker import ScanWorker, TranscodeWorker

logger = logging.getLogger(__name__)

FolderChooser = Callable[[], Path | None]


class ImportOrchestrator(QObject):

    state_changed  = Signal(object)
    batch_finished = Signal(str)

    def __init__(
        self,
        transcoder: Transcoder,
        choose_folder: FolderChooser | None = None,
        output_base: Path | None = None,
        default_base: Callable[[], Path | None] = default_pictures_dir,
        clock: Callable[[], datetime] = datetime.now,
        parent=None,
    ):
        super().__init__(parent)
        self._transcoder    = transcoder
        self._choose_folder = choose_folder
        self._output_base   = output_base
        self._default_base  = default_base
        self._clock         = clock

        self._state = ImportState.idle()
        self._clips: list[ClipInfo] = []
        self._plan: OutputPlan | None = None
        self._index = 0
        self._access = ExitStack()
        self._scan_worker: ScanWorker | None = None
        self._worker: TranscodeWorker | None = None

    # ── Public API ────────────────────────────────────────────────────────────

    @property
    def state(self) -> ImportState:
        return self._state

    def set_folder_chooser(self, choose_folder: FolderChooser | None) -> None:
        """Called with no arguments when the default output base is unusable."""
        self._choose_folder = choose_folder

    def start(self, roots: Iterable[Path | str]) -> bool:
        """
        Begin a batch over *roots*. Returns False, changing nothing, while
        another batch is scanning or converting or when *roots* is empty.
        """
        if self._state.is_busy:
            logger.info("[ORCHESTRATOR] start() ignored: a batch is already %s",
                        self._state.phase.name)
            return False

        roots = [Path(r) for r in roots]
        if not roots:
            logger.info("[ORCHESTRATOR] start() ignored: no input paths")
            return False

        self._clear_batch()
        for root in roots:
            self._access.enter_context(ScopedAccess(root))

        logger.info("[ORCHESTRATOR] Starting batch for %d root(s): %s",
                    len(roots), [str(r) for r in roots])
        self._set_state(ImportState.scanning())

        worker = ScanWorker(roots, parent=self)
        worker.scanned.connect(self._on_scanned)
        worker.scan_failed.connect(self._on_scan_failed)
        worker.finished.connect(worker.deleteLater)
        self._scan_worker = worker
        worker.start()
        return True

    def reject_drop(self) -> bool:
        """
        A drop arrived but none of it was a local file or folder. Shown as a
        failed import so the user sees why nothing happened.
        """
        if self._state.is_busy:
            return False
        self._clear_batch()
        self._fail(NO_READABLE_DROP_MESSAGE)
        return True

    def reset(self) -> bool:
        """Back to IDLE. Refused while a batch is running."""
        if self._state.is_busy:
            logger.info("[ORCHESTRATOR] reset() ignored while %s", self._state.phase.name)
            return False
        self._clear_batch()
        self._set_state(ImportState.idle())
        return True

    def cancel_current(self) -> bool:
        """Cancel the clip being converted; the batch moves on to the next one."""
        if self._worker is None:
            return False
        self._worker.cancel()
        return True

    def shutdown(self) -> None:
        """Stop whatever is running and wait for the worker threads to exit."""
        if self._worker is not None:
            self._worker.cancel()
            self._worker.wait()
        if self._scan_worker is not None:
            self._scan_worker.wait()
        self._access.close()

    # ── Scan results ──────────────────────────────────────────────────────────

    def _on_scanned(self, clips: list[ClipInfo]) -> None:
        self._join_scan_worker()
        if self._state.phase is not ImportPhase.SCANNING:
            return

        logger.info("[ORCHESTRATOR] Scan found %d clip(s)", len(clips))
        if not clips:
            self._fail(NO_CLIPS_MESSAGE)
            return

        output_dir = self._resolve_output_directory()
        if output_dir is None:
            return

        self._clips = list(clips)
        self._plan  = OutputPlan(output_dir)
        self._index = 0
        self._set_state(ImportState(
            phase=ImportPhase.CONVERTING,
            total_count=len(self._clips),
            output_folder=output_dir,
        ))
        self._start_next_clip()

    def _on_scan_failed(self, message: str) -> None:
        self._join_scan_worker()
        if self._state.phase is ImportPhase.SCANNING:
            self._fail(scan_failed_message(message))

    def _join_scan_worker(self) -> None:
        if self._scan_worker is not None:
            self._scan_worker.wait()
            self._scan_worker = None

    # ── Output folder ─────────────────────────────────────────────────────────

    def _resolve_output_directory(self) -> Path | None:
        """Output folder for this batch, or None after moving to FAILED."""
        try:
            return ensure_output_directory(self._output_base, self._clock(), self._default_base)
        except OutputError as exc:
            if not exc.recoverable or self._choose_folder is None:
                logger.error("[ORCHESTRATOR] Output folder failed: %s", exc.message)
                self._fail(output_failed_message(exc.message))
                return None
            logger.warning("[ORCHESTRATOR] Default output unusable (%s), asking for another",
                           exc.kind.value)

        chosen = self._choose_folder()
        if not chosen:
            self._fail(NO_OUTPUT_SELECTED_MESSAGE)
            return None

        chosen = Path(chosen)
        self._access.enter_context(ScopedAccess(chosen, write=True))
        try:
            return ensure_output_directory(chosen, self._clock(), self._default_base)
        except OutputError as exc:
            logger.error("[ORCHESTRATOR] Output folder under '%s' failed: %s", chosen, exc.message)
            self._fail(output_failed_message(exc.message))
            return None

    # ── Clip loop ─────────────────────────────────────────────────────────────

    def _start_next_clip(self) -> None:
        if self._index >= len(self._clips):
            self._complete()
            return

        clip = self._clips[self._index]
        destination = self._plan.destination_for(clip.path)
        logger.info("[ORCHESTRATOR] Clip %d/%d: '%s' → '%s'",
                    self._index + 1, len(self._clips), clip.name, destination)

        self._set_state(self._state.evolve(current_clip=clip, clip_progress=0.0))

        worker = TranscodeWorker(self._transcoder, clip, destination, parent=self)
        worker.progress_changed.connect(self._on_clip_progress)
        worker.clip_finished.connect(self._on_clip_finished)
        worker.finished.connect(worker.deleteLater)
        self._worker = worker
        worker.start()

    def _on_clip_progress(self, fraction: float) -> None:
        if self._state.phase is not ImportPhase.CONVERTING:
            return
        fraction = min(max(fraction, 0.0), 1.0)
        if fraction <= self._state.clip_progress:
            return
        self._set_state(self._state.evolve(clip_progress=fraction))

    def _on_clip_finished(self, error: TranscodeError | None) -> None:
        if self._worker is not None:
            self._worker.wait()
            self._worker = None
        if self._state.phase is not ImportPhase.CONVERTING:
            return

        clip = self._clips[self._index]
        errors = self._state.errors
        if error is not None:
            errors = errors + (ConversionError(clip.name, error.reason),)

        self._index += 1
        self._set_state(self._state.evolve(
            processed_count=min(self._state.processed_count + 1, self._state.total_count),
            clip_progress=0.0,
            errors=errors,
        ))
        self._start_next_clip()

    # ── Terminal states ───────────────────────────────────────────────────────

    def _complete(self) -> None:
        state = self._state.evolve(phase=ImportPhase.COMPLETED, current_clip=None)
        self._access.close()
        self._set_state(state)
        logger.info("[ORCHESTRATOR] Batch complete: %d of %d clip(s) converted",
                    state.success_count, state.total_count)

        _title, body = notification_text(state)
        self.batch_finished.emit(body)

    def _fail(self, message: str) -> None:
        logger.warning("[ORCHESTRATOR] Batch failed: %s", message)
        self._access.close()
        self._set_state(ImportState.failed(message))

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _clear_batch(self) -> None:
        self._access.close()
        self._access = ExitStack()
        self._clips = []
        self._plan  = None
        self._index = 0

    def _set_state(self, state: ImportState) -> None:
        if state.phase is not self._state.phase:
            logger.debug("[ORCHESTRATOR] Status %s → %s",
                         self._state.phase.name, state.phase.name)
        self._state = state
        self.state_changed.emit(state)
