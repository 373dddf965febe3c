"""
importer.scanner
~~~~~~~~~~~~~~~~
Finds AVCHD clips under one or more input roots.
Plain filesystem code: no Qt, no subprocess.

A file is a clip when it
    - is a regular file with the .mts extension (any case),
    - sits somewhere below an AVCHD/BDMV/STREAM folder chain (any case),
    - is at least MINIMUM_CLIP_SIZE bytes, which keeps the tiny index
      and thumbnail stubs that share the extension out of the batch.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Iterable

from importer.errors import ScanError
from importer.models import ClipInfo

logger = logging.getLogger(__name__)

CLIP_EXTENSION = ".mts"
STREAM_MARKER: tuple[str, ...] = ("avchd", "bdmv", "stream")
MINIMUM_CLIP_SIZE = 10 * 1024 * 1024

# Directories we never descend into (macOS packages and friends)
PACKAGE_SUFFIXES: frozenset[str] = frozenset({
    ".app", ".bundle", ".framework", ".photoslibrary", ".fcpbundle",
})


# ── Public API ────────────────────────────────────────────────────────────────

def scan(roots: Iterable[Path | str]) -> list[ClipInfo]:
    """
    Return every clip reachable from *roots*, each reported once, in
    chronological order (ties broken by case-insensitive file name).

    A root that can't be read is logged and skipped. ScanError is raised
    only when there were no roots at all or none of them could be read.
    """
    roots = [Path(r).expanduser() for r in roots]
    if not roots:
        raise ScanError("No input folders were provided.")

    clips: list[ClipInfo] = []
    seen: set[str] = set()
    failures: list[ScanError] = []

    for root in roots:
        try:
            found = _scan_root(root, seen)
        except ScanError as exc:
            logger.warning("[SCANNER] Skipping root '%s': %s", root, exc.message)
            failures.append(exc)
            continue
        logger.info("[SCANNER] '%s' → %d clip(s)", root, len(found))
        clips.extend(found)

    if len(failures) == len(roots):
        if len(failures) == 1:
            raise failures[0]
        raise ScanError(f"None of the {len(roots)} dropped items could be read.")

    return sorted(clips, key=_sort_key)


def is_clip_path(path: Path | str) -> bool:
    """Extension and folder-chain test only; no filesystem access."""
    path = Path(path)
    if path.suffix.lower() != CLIP_EXTENSION:
        return False
    return _contains_stream_marker(path.parts)


# ── Internal helpers ──────────────────────────────────────────────────────────

def _scan_root(root: Path, seen: set[str]) -> list[ClipInfo]:
    try:
        st = os.stat(root)
    except OSError as exc:
        raise ScanError(f"Cannot read {root}: {exc.strerror or exc}", root=root) from exc

    if not stat.S_ISDIR(st.st_mode):
        clip = _evaluate(root, seen)
        return [clip] if clip else []

    # os.walk swallows an unreadable top directory, so probe it first
    try:
        with os.scandir(root):
            pass
    except OSError as exc:
        raise ScanError(f"Cannot read {root}: {exc.strerror or exc}", root=root) from exc

    clips: list[ClipInfo] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        # prune in place so os.walk never descends into these
        dirnames[:] = sorted(
            d for d in dirnames
            if not _is_hidden(d) and Path(d).suffix.lower() not in PACKAGE_SUFFIXES
        )
        for name in filenames:
            if _is_hidden(name):
                continue
            clip = _evaluate(Path(dirpath) / name, seen)
            if clip:
                clips.append(clip)
    return clips


def _evaluate(path: Path, seen: set[str]) -> ClipInfo | None:
    """Return a ClipInfo when *path* qualifies and hasn't been seen yet."""
    if not is_clip_path(path):
        return None

    try:
        st = os.stat(path)
    except OSError as exc:
        logger.debug("[SCANNER] Unreadable entry '%s': %s", path, exc)
        return None

    if not stat.S_ISREG(st.st_mode):
        return None
    if st.st_size < MINIMUM_CLIP_SIZE:
        logger.debug("[SCANNER] Too small, skipping '%s' (%d bytes)", path, st.st_size)
        return None

    resolved = os.path.realpath(path)
    key = os.path.normcase(resolved)
    if key in seen:
        return None
    seen.add(key)

    return ClipInfo(path=Path(resolved), size=st.st_size, modified=st.st_mtime)


def _contains_stream_marker(parts: tuple[str, ...]) -> bool:
    lowered = [p.lower() for p in parts]
    width = len(STREAM_MARKER)
    return any(
        tuple(lowered[i:i + width]) == STREAM_MARKER
        for i in range(len(lowered) - width + 1)
    )


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _sort_key(clip: ClipInfo) -> tuple[float, str, str]:
    return clip.modified, clip.name.casefold(), str(clip.path)


def _log_walk_error(exc: OSError) -> None:
    logger.debug("[SCANNER] Skipping unreadable directory: %s", exc)
