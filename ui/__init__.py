from .main_window import MainWindow
from .console import ConsoleRunner

__all__ = ["MainWindow", "ConsoleRunner"]
