"""
importer.config
~~~~~~~~~~~~~~~
Runtime settings for one application session.

Settings come from the command line first, then environment variables,
then the defaults in importer.paths. Nothing here is ever written to disk:
the only artifacts the importer leaves behind are the converted clips.

Environment
-----------
  CAMCORDER_IMPORT_OUTPUT   base folder for "Camcorder Imports"
  CAMCORDER_IMPORT_FFMPEG   ffmpeg binary
  CAMCORDER_IMPORT_FFPROBE  ffprobe binary
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from importer.paths import FFMPEG_BIN, FFPROBE_BIN

ENV_OUTPUT  = "CAMCORDER_IMPORT_OUTPUT"
ENV_FFMPEG  = "CAMCORDER_IMPORT_FFMPEG"
ENV_FFPROBE = "CAMCORDER_IMPORT_FFPROBE"


@dataclass
class ImportSettings:
    inputs: list[Path] = field(default_factory=list)
    output_base: Path | None = None    # None = platform pictures folder
    ffmpeg: Path = FFMPEG_BIN
    ffprobe: Path = FFPROBE_BIN
    headless: bool = False
    log_file: Path | None = None
    verbose: bool = False


# ── Public API ────────────────────────────────────────────────────────────────

def load_settings(args=None, environ: Mapping[str, str] | None = None) -> ImportSettings:
    """
    Build ImportSettings from an argparse namespace (or None) and *environ*.

    Command-line values win over the environment; anything left unset keeps
    its dataclass default.
    """
    env = os.environ if environ is None else environ

    settings = ImportSettings(
        inputs   = [Path(p).expanduser() for p in getattr(args, "paths", None) or []],
        headless = bool(getattr(args, "no_gui", False)),
        verbose  = bool(getattr(args, "verbose", False)),
    )

    settings.output_base = _pick_path(getattr(args, "output", None), env.get(ENV_OUTPUT))

    ffmpeg = _pick_path(getattr(args, "ffmpeg", None), env.get(ENV_FFMPEG))
    if ffmpeg:
        settings.ffmpeg = ffmpeg

    ffprobe = _pick_path(getattr(args, "ffprobe", None), env.get(ENV_FFPROBE))
    if ffprobe:
        settings.ffprobe = ffprobe

    settings.log_file = _pick_path(getattr(args, "log_file", None), None)
    return settings


# ── Helpers ───────────────────────────────────────────────────────────────────

def _pick_path(*candidates: str | None) -> Path | None:
    for value in candidates:
        if value:
            return Path(value).expanduser()
    return None
