"""
importer.probe
~~~~~~~~~~~~~~
Thin wrapper around the ffprobe CLI, plus a check that the local ffmpeg
build can actually write the MP4 preset.
No Qt here; callers get ProbeResult dataclasses back.
"""

from __future__ import annotations

import functools
import json
import logging
import subprocess
from pathlib import Path

from importer.command_builder import build_capability_command, build_probe_command
from importer.models import ProbeResult
from importer.paths import FFMPEG_BIN, FFPROBE_BIN

logger = logging.getLogger(__name__)

REQUIRED_MUXER   = "mp4"
REQUIRED_ENCODER = "libx264"


# ── Public API ────────────────────────────────────────────────────────────────

def probe(file: Path, ffprobe: Path = FFPROBE_BIN) -> ProbeResult:
    """
    Run ffprobe on *file* and return a ProbeResult.

    Raises:
        FileNotFoundError  – if the input file does not exist
        RuntimeError       – if ffprobe exits with a non-zero code
    """
    if not file.exists():
        raise FileNotFoundError(f"Input file not found: {file}")

    result = subprocess.run(
        build_probe_command(file, ffprobe),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding="utf-8",
        errors="replace",
    )
    if result.returncode != 0:
        raise RuntimeError(
            f"ffprobe failed on {file.name}:\n{result.stderr.strip()}"
        )

    return parse_probe_output(file, json.loads(result.stdout or "{}"))


@functools.lru_cache(maxsize=None)
def supports_mp4_output(ffmpeg: Path = FFMPEG_BIN) -> bool:
    """
    True when *ffmpeg* lists both the mp4 muxer and the libx264 encoder.
    Cached per binary; raises OSError if the binary can't be started.
    """
    muxers   = _list_names(ffmpeg, "-muxers")
    encoders = _list_names(ffmpeg, "-encoders")
    ok = REQUIRED_MUXER in muxers and REQUIRED_ENCODER in encoders
    if not ok:
        logger.warning("[PROBE] %s lacks %s muxer or %s encoder",
                       ffmpeg, REQUIRED_MUXER, REQUIRED_ENCODER)
    return ok


# ── Internal helpers ──────────────────────────────────────────────────────────

def parse_probe_output(file: Path, data: dict) -> ProbeResult:
    """Extract the fields we care about from raw ffprobe JSON."""
    fmt = data.get("format", {})
    streams = data.get("streams", [])

    try:
        duration = float(fmt.get("duration", 0.0))
    except (TypeError, ValueError):
        duration = 0.0

    video_stream = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio_stream = next((s for s in streams if s.get("codec_type") == "audio"), {})

    return ProbeResult(
        path=file,
        duration_seconds=duration,
        width=int((video_stream or {}).get("width", 0)),
        height=int((video_stream or {}).get("height", 0)),
        video_codec=(video_stream or {}).get("codec_name", ""),
        audio_codec=audio_stream.get("codec_name", ""),
        has_video=video_stream is not None,
    )


def parse_capability_listing(text: str) -> frozenset[str]:
    """
    Pull the names out of `ffmpeg -muxers` / `ffmpeg -encoders` output.

    Both listings put flags in the first column and the name in the second,
    after a legend that ends with a dashed separator line.
    """
    names: set[str] = set()
    in_body = False
    for line in text.splitlines():
        stripped = line.strip()
        if not in_body:
            in_body = stripped.startswith("--")
            continue
        parts = stripped.split()
        if len(parts) >= 2:
            # a muxer entry can name several formats: "mov,mp4,m4a,..."
            names.update(parts[1].split(","))
    return frozenset(names)


def _list_names(ffmpeg: Path, listing: str) -> frozenset[str]:
    result = subprocess.run(
        build_capability_command(listing, ffmpeg),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding="utf-8",
        errors="replace",
    )
    return parse_capability_listing(result.stdout)
