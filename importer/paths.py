"""
importer.paths
~~~~~~~~~~~~~~
Single source of truth for filesystem paths used across the app.
Import these instead of hard-coding strings anywhere else.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from PySide6.QtCore import QStandardPaths

# Project root = the directory that contains main.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent

BIN_DIR = PROJECT_ROOT / "bin"


def find_binary(name: str) -> Path:
    """
    Prefer a binary dropped into BIN_DIR, then whatever is on PATH.
    Falls back to the BIN_DIR location so error messages point somewhere useful.
    """
    bundled = BIN_DIR / name
    if bundled.is_file():
        return bundled
    on_path = shutil.which(name)
    if on_path:
        return Path(on_path)
    return bundled


FFMPEG_BIN  = find_binary("ffmpeg")
FFPROBE_BIN = find_binary("ffprobe")


def validate_binaries(*binaries: Path) -> list[str]:
    """
    Return a list of error strings for any missing/non-executable binaries.
    Empty list means all good.

    Call this at startup and tell the user if errors is non-empty.
    """
    errors: list[str] = []
    for binary in binaries or (FFMPEG_BIN, FFPROBE_BIN):
        if not binary.exists():
            errors.append(f"Binary not found: {binary}")
        elif not binary.is_file():
            errors.append(f"Not a file: {binary}")
        elif not binary.stat().st_mode & 0o111:
            errors.append(f"Not executable: {binary}")
    return errors


def default_pictures_dir() -> Path | None:
    """
    The user's standard pictures folder, or None when the platform can't
    tell us where it is.
    """
    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.PicturesLocation
    )
    if location:
        return Path(location)

    fallback = Path.home() / "Pictures"
    if fallback.is_dir():
        return fallback
    return None
