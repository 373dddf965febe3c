from pathlib import Path

from PySide6.QtWidgets import QFrame, QLabel, QVBoxLayout
from PySide6.QtCore import Qt, Signal


class DropZone(QFrame):
    """
    Dashed drop target for SD cards and folders.

    Signals
    -------
    paths_dropped(list[Path])   local paths from the drop, in drop order
    unreadable_drop()           a drop that carried no local file or folder
    """

    paths_dropped = Signal(object)
    unreadable_drop = Signal()

    _STYLE = """
        QFrame#DropZone {{
            background-color: {background};
            border: {width}px dashed {border};
            border-radius: 18px;
        }}
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("DropZone")
        self.setAcceptDrops(True)
        self.setMinimumHeight(200)
        self._enabled = True

        col = QVBoxLayout(self)
        col.setContentsMargins(28, 24, 28, 24)
        col.setSpacing(8)
        col.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._title = QLabel("Drop SD Card or Folder")
        self._title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._title.setStyleSheet(
            "color: #e0e0e0; font-size: 14pt; font-weight: 600; border: none;"
        )
        col.addWidget(self._title)

        hint = QLabel("Finds AVCHD .MTS clips and converts to MP4")
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        hint.setStyleSheet("color: #777; font-size: 9pt; border: none;")
        col.addWidget(hint)

        self._apply_style(targeted=False)

    # ── Public API ────────────────────────────────────────────────────────────

    def set_accepting(self, accepting: bool) -> None:
        self._enabled = accepting
        self._title.setText("Drop SD Card or Folder" if accepting else "Processing...")
        self._apply_style(targeted=False)

    # ── Drag & drop ───────────────────────────────────────────────────────────

    def dragEnterEvent(self, event):
        if self._enabled and event.mimeData().hasUrls():
            event.acceptProposedAction()
            self._apply_style(targeted=True)
        else:
            event.ignore()

    def dragLeaveEvent(self, event):
        self._apply_style(targeted=False)

    def dropEvent(self, event):
        self._apply_style(targeted=False)
        paths = [Path(u.toLocalFile()) for u in event.mimeData().urls() if u.isLocalFile()]
        if not self._enabled:
            event.ignore()
            return
        if not paths:
            event.ignore()
            self.unreadable_drop.emit()
            return
        event.acceptProposedAction()
        self.paths_dropped.emit(paths)

    # ── Style helpers ─────────────────────────────────────────────────────────

    def _apply_style(self, targeted: bool):
        if targeted:
            border, width = "#e08a38", 3
        else:
            border, width = ("#558B6E" if self._enabled else "#3a3a3a"), 2
        background = "#2a2a2a" if self._enabled else "#1e1e1e"
        self.setStyleSheet(self._STYLE.format(background=background, border=border, width=width))
