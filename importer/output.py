"""
importer.output
~~~~~~~~~~~~~~~
Where converted clips land.

Layout
------
    <base>/Camcorder Imports/<YYYY-MM-DD>/<clip stem>[-N].mp4

<base> is the user's pictures folder unless the caller supplies another
one. The date folder uses the local date of the import.
"""

from __future__ import annotations

import errno
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable

from importer.errors import OutputError, OutputErrorKind
from importer.paths import default_pictures_dir

logger = logging.getLogger(__name__)

IMPORTS_FOLDER_NAME = "Camcorder Imports"
OUTPUT_EXTENSION    = ".mp4"
DATE_FOLDER_FORMAT  = "%Y-%m-%d"


# ── Output directory ──────────────────────────────────────────────────────────

def ensure_output_directory(
    base_override: Path | None = None,
    as_of: datetime | None = None,
    default_base: Callable[[], Path | None] = default_pictures_dir,
) -> Path:
    """
    Create (if needed) and return the dated output folder.

    Calling this twice for the same base and day returns the same path and
    leaves the filesystem as it was after the first call.

    Raises:
        OutputError – CANNOT_LOCATE_DEFAULT_BASE when no override is given and
                      *default_base* returns None, PERMISSION_DENIED when the
                      folder can't be created for lack of rights, OTHER for
                      anything else.
    """
    if base_override is not None:
        base = Path(base_override).expanduser()
    else:
        base = default_base()
        if base is None:
            raise OutputError(
                "The Pictures folder could not be located.",
                kind=OutputErrorKind.CANNOT_LOCATE_DEFAULT_BASE,
            )

    root = base if base.name == IMPORTS_FOLDER_NAME else base / IMPORTS_FOLDER_NAME
    day  = (as_of or datetime.now()).strftime(DATE_FOLDER_FORMAT)
    output_dir = root / day

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError as exc:
        raise OutputError(
            f"Permission denied: {output_dir}",
            kind=OutputErrorKind.PERMISSION_DENIED,
            path=output_dir,
        ) from exc
    except OSError as exc:
        # a read-only volume is as unwritable as a folder we lack rights to
        kind = (OutputErrorKind.PERMISSION_DENIED if exc.errno == errno.EROFS
                else OutputErrorKind.OTHER)
        raise OutputError(
            f"{exc.strerror or exc}: {output_dir}", kind=kind, path=output_dir
        ) from exc

    logger.info("[OUTPUT] Output folder ready: '%s'", output_dir)
    return output_dir


# ── Per-clip destination ──────────────────────────────────────────────────────

def plan_destination(source: Path, output_directory: Path) -> Path:
    """
    Return a path in *output_directory* for *source* that doesn't exist yet.

    Example:
        source = Path("/card/PRIVATE/AVCHD/BDMV/STREAM/00003.MTS")
        output_directory holds 00003.mp4 and 00003-1.mp4
        → output_directory / "00003-2.mp4"

    Existence is checked right now, so call this just before converting
    the clip, not for the whole batch up front.
    """
    return _first_free(Path(source).stem, Path(output_directory), lambda p: p.exists())


class OutputPlan:
    """
    One batch's output folder plus the destinations handed out so far.

    A destination is never issued twice, even if the clip that got it
    failed and its partial file was cleaned up again.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._issued: set[str] = set()

    def destination_for(self, source: Path) -> Path:
        candidate = _first_free(
            Path(source).stem,
            self.directory,
            lambda p: p.exists() or os.path.normcase(str(p)) in self._issued,
        )
        self._issued.add(os.path.normcase(str(candidate)))
        return candidate


def _first_free(stem: str, directory: Path, taken: Callable[[Path], bool]) -> Path:
    candidate = directory / f"{stem}{OUTPUT_EXTENSION}"
    index = 1
    while taken(candidate):
        candidate = directory / f"{stem}-{index}{OUTPUT_EXTENSION}"
        index += 1
    return candidate
