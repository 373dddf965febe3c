import argparse
import logging
import sys

from PySide6.QtCore import QCoreApplication
from PySide6.QtWidgets import QApplication, QMessageBox
from PySide6.QtGui import QFont
from qt_material import apply_stylesheet

from importer import FfmpegTranscoder, ImportOrchestrator
from importer.config import load_settings
from importer.log_setup import setup_logging
from importer.paths import validate_binaries

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert AVCHD camcorder clips (AVCHD/BDMV/STREAM/*.MTS) to MP4."
    )
    parser.add_argument("paths", nargs="*",
                        help="SD card mount points, folders or .MTS files to import")
    parser.add_argument("-o", "--output",
                        help="base folder for 'Camcorder Imports' (default: Pictures)")
    parser.add_argument("--no-gui", action="store_true",
                        help="run one import in the terminal and exit")
    parser.add_argument("--ffmpeg", help="path to the ffmpeg binary")
    parser.add_argument("--ffprobe", help="path to the ffprobe binary")
    parser.add_argument("--log-file", help="also write a rotating log file here")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args)
    setup_logging(settings.verbose, settings.log_file)

    problems = validate_binaries(settings.ffmpeg, settings.ffprobe)
    for problem in problems:
        logger.error(problem)

    if settings.headless:
        from ui.console import ConsoleRunner

        if problems:
            return 1
        if not settings.inputs:
            logger.error("--no-gui needs at least one input path")
            return 1

        app = QCoreApplication(sys.argv[:1])
        orchestrator = ImportOrchestrator(
            FfmpegTranscoder(settings.ffmpeg, settings.ffprobe),
            output_base=settings.output_base,
        )
        return ConsoleRunner(app, orchestrator).run(settings.inputs)

    from ui import MainWindow

    app = QApplication(sys.argv[:1])

    # Base font
    font = QFont("Segoe UI", 10)
    app.setFont(font)

    apply_stylesheet(app, theme="dark_lightgreen.xml")

    orchestrator = ImportOrchestrator(
        FfmpegTranscoder(settings.ffmpeg, settings.ffprobe),
        output_base=settings.output_base,
    )
    window = MainWindow(orchestrator)
    orchestrator.set_folder_chooser(window.choose_output_base)
    window.show()

    if problems:
        QMessageBox.warning(window, "ffmpeg not found", "\n".join(problems))
    if settings.inputs:
        orchestrator.start(settings.inputs)

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
