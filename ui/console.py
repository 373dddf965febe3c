"""
ui.console
~~~~~~~~~~
Headless front end: runs one batch on a QCoreApplication event loop and
prints what the window would show.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QObject, QTimer

from importer import ImportOrchestrator, ImportPhase, ImportState
from importer.summary import error_summary, progress_detail, status_detail

logger = logging.getLogger(__name__)

EXIT_OK          = 0
EXIT_FAILED      = 1
EXIT_CLIP_ERRORS = 2


class ConsoleRunner(QObject):

    def __init__(self, app: QCoreApplication, orchestrator: ImportOrchestrator, parent=None):
        super().__init__(parent)
        self._app = app
        self._orchestrator = orchestrator
        self._last_clip: Path | None = None
        self._last_percent = -1
        self._orchestrator.state_changed.connect(self._on_state)
        self._orchestrator.batch_finished.connect(lambda body: print(body))

    def run(self, paths: list[Path]) -> int:
        QTimer.singleShot(0, lambda: self._begin(paths))
        return self._app.exec()

    def _begin(self, paths: list[Path]) -> None:
        if not self._orchestrator.start(paths):
            print("Nothing to import.")
            self._app.exit(EXIT_FAILED)

    def _on_state(self, state: ImportState) -> None:
        if state.phase is ImportPhase.SCANNING:
            print(status_detail(state))

        elif state.phase is ImportPhase.CONVERTING:
            clip = state.current_clip.path if state.current_clip else None
            percent = int(state.clip_progress * 100)
            # one line per clip start and per 10% step
            if clip != self._last_clip or percent // 10 != self._last_percent // 10:
                self._last_clip = clip
                self._last_percent = percent
                if clip is not None:
                    print(progress_detail(state))

        elif state.phase is ImportPhase.FAILED:
            print(state.message)
            self._app.exit(EXIT_FAILED)

        elif state.phase is ImportPhase.COMPLETED:
            print(status_detail(state))
            summary = error_summary(state.errors)
            if summary:
                print(summary)
            self._app.exit(EXIT_CLIP_ERRORS if state.errors else EXIT_OK)
