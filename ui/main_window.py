from pathlib import Path

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout,
    QLabel, QProgressBar, QPushButton, QFileDialog,
    QSystemTrayIcon, QStyle
)
from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QDesktopServices

from importer import ImportOrchestrator, ImportPhase, ImportState
from importer.paths import default_pictures_dir
from importer.summary import (
    error_summary, notification_text, progress_detail, status_detail, status_title
)
from ui.drop_zone import DropZone


def _button(label: str, color: str, hover: str) -> QPushButton:
    """Factory for the bottom action buttons."""
    btn = QPushButton(label)
    btn.setFixedHeight(32)
    btn.setCursor(Qt.CursorShape.PointingHandCursor)
    btn.setStyleSheet(f"""
        QPushButton {{
            background-color: {color};
            color: white;
            border: none;
            border-radius: 6px;
            padding: 0 14px;
            font-size: 10pt;
            font-weight: 600;
        }}
        QPushButton:hover {{ background-color: {hover}; }}
    """)
    return btn


# ── Main Window ───────────────────────────────────────────────────────────────

class MainWindow(QMainWindow):
    """Top-level application window: one drop zone, one batch at a time."""

    def __init__(self, orchestrator: ImportOrchestrator):
        super().__init__()
        self.orchestrator = orchestrator

        self.setWindowTitle("Camcorder Importer")
        self.resize(680, 520)
        self.setMinimumSize(560, 440)
        self.setStyleSheet("background-color: #121212;")

        central = QWidget()
        self.setCentralWidget(central)

        root = QVBoxLayout(central)
        root.setContentsMargins(32, 28, 32, 28)
        root.setSpacing(16)

        # ── Header ────────────────────────────────────────────────────────────
        heading = QLabel("Camcorder Importer")
        heading.setAlignment(Qt.AlignmentFlag.AlignCenter)
        heading.setStyleSheet("color: #e0e0e0; font-size: 18pt; font-weight: 700;")
        root.addWidget(heading)

        self._title = QLabel()
        self._title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._title.setStyleSheet("color: #aaaaaa; font-size: 12pt;")
        root.addWidget(self._title)

        # ── Drop zone ─────────────────────────────────────────────────────────
        self._drop_zone = DropZone()
        self._drop_zone.paths_dropped.connect(self._start_import)
        self._drop_zone.unreadable_drop.connect(lambda: self.orchestrator.reject_drop())
        root.addWidget(self._drop_zone, 1)

        # ── Status ────────────────────────────────────────────────────────────
        self._detail = QLabel()
        self._detail.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._detail.setWordWrap(True)
        self._detail.setStyleSheet("color: #cccccc; font-size: 10pt;")
        root.addWidget(self._detail)

        self._bar = QProgressBar()
        self._bar.setRange(0, 1000)
        self._bar.setTextVisible(False)
        self._bar.setFixedHeight(8)
        self._bar.setStyleSheet("""
            QProgressBar {
                border: none;
                border-radius: 4px;
                background-color: #2a2a2a;
            }
            QProgressBar::chunk { background-color: #558B6E; border-radius: 4px; }
        """)
        root.addWidget(self._bar)

        self._progress = QLabel()
        self._progress.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._progress.setStyleSheet("color: #888; font-size: 9pt;")
        root.addWidget(self._progress)

        self._errors = QLabel()
        self._errors.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._errors.setWordWrap(True)
        self._errors.setStyleSheet("color: #e74c3c; font-size: 9pt;")
        root.addWidget(self._errors)

        # ── Actions ───────────────────────────────────────────────────────────
        actions = QHBoxLayout()
        actions.setSpacing(12)
        actions.addStretch()

        self._choose_btn = _button("Choose Folder…", "#3d7ec9", "#5591d6")
        self._choose_btn.clicked.connect(self._choose_input)
        actions.addWidget(self._choose_btn)

        self._skip_btn = _button("Skip Clip", "#b8860b", "#d19b12")
        self._skip_btn.clicked.connect(lambda: self.orchestrator.cancel_current())
        actions.addWidget(self._skip_btn)

        self._open_btn = _button("Open Output Folder", "#558B6E", "#67a382")
        self._open_btn.clicked.connect(self._open_output)
        actions.addWidget(self._open_btn)

        self._reset_btn = _button("Import Another", "#444", "#666")
        self._reset_btn.clicked.connect(lambda: self.orchestrator.reset())
        actions.addWidget(self._reset_btn)

        actions.addStretch()
        root.addLayout(actions)

        # ── Notifications ─────────────────────────────────────────────────────
        self._tray = None
        if QSystemTrayIcon.isSystemTrayAvailable():
            self._tray = QSystemTrayIcon(
                self.style().standardIcon(QStyle.StandardPixmap.SP_DriveHDIcon), self
            )
            self._tray.show()

        self.orchestrator.state_changed.connect(self._render)
        self.orchestrator.batch_finished.connect(self._notify)
        self._render(self.orchestrator.state)

    # ── Folder chooser handed to the orchestrator ─────────────────────────────

    def choose_output_base(self) -> Path | None:
        start = default_pictures_dir() or Path.home()
        chosen = QFileDialog.getExistingDirectory(
            self,
            "Choose Output Folder for the converted MP4 files",
            str(start),
        )
        return Path(chosen) if chosen else None

    # ── Actions ───────────────────────────────────────────────────────────────

    def _start_import(self, paths: list[Path]) -> None:
        self.orchestrator.start(paths)

    def _choose_input(self) -> None:
        chosen = QFileDialog.getExistingDirectory(self, "Choose SD Card or Folder", str(Path.home()))
        if chosen:
            self._start_import([Path(chosen)])

    def _open_output(self) -> None:
        folder = self.orchestrator.state.output_folder
        if folder:
            QDesktopServices.openUrl(QUrl.fromLocalFile(str(folder)))

    def _notify(self, body: str) -> None:
        if self._tray is not None:
            title, _ = notification_text(self.orchestrator.state)
            self._tray.showMessage(title, body)

    # ── Rendering ─────────────────────────────────────────────────────────────

    def _render(self, state: ImportState) -> None:
        busy = state.is_busy
        self._drop_zone.set_accepting(not busy)
        self._choose_btn.setEnabled(not busy)

        self._title.setText(status_title(state))
        self._detail.setText(status_detail(state))

        self._bar.setVisible(busy)
        if state.phase is ImportPhase.SCANNING:
            self._bar.setRange(0, 0)   # indeterminate
        else:
            self._bar.setRange(0, 1000)
            self._bar.setValue(int(state.overall_progress * 1000))

        self._progress.setText(progress_detail(state))
        summary = error_summary(state.errors)
        self._errors.setText(summary or "")
        self._errors.setVisible(summary is not None)

        self._skip_btn.setVisible(state.phase is ImportPhase.CONVERTING)
        self._open_btn.setVisible(state.output_folder is not None and not busy)
        self._reset_btn.setVisible(state.can_reset)

    def closeEvent(self, event):
        self.orchestrator.shutdown()
        super().closeEvent(event)
