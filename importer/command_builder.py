"""
importer.command_builder
~~~~~~~~~~~~~~~~~~~~~~~~
Builds ffmpeg/ffprobe CLI commands as plain list[str].

Keeping command construction separate means you can:
  - log the exact command before running it
  - paste it straight into a terminal for debugging
  - unit-test flag generation without running any process
"""

from __future__ import annotations

import shlex
from pathlib import Path

from importer.paths import FFMPEG_BIN, FFPROBE_BIN

# Fixed "highest quality" preset. AVCHD is interlaced H.264 in MPEG-TS,
# so deinterlace and re-encode into a progressive, web-friendly MP4.
QUALITY_PRESET: list[str] = [
    "-map", "0:v:0",
    "-map", "0:a?",
    "-vf", "yadif=mode=send_frame:deint=interlaced",
    "-c:v", "libx264",
    "-preset", "slow",
    "-crf", "18",
    "-pix_fmt", "yuv420p",
    "-c:a", "aac",
    "-b:a", "192k",
    "-movflags", "+faststart",
]

# Seconds between progress blocks on stdout
PROGRESS_PERIOD = 0.1


def build_transcode_command(
    input_file: Path,
    output_file: Path,
    ffmpeg: Path = FFMPEG_BIN,
) -> list[str]:
    """
    Build the full ffmpeg command for converting one clip.

    The command structure is:
        ffmpeg
          -hide_banner -nostdin
          -i <input>
          -nostats               ← suppress human-readable stats on stderr
          -progress pipe:1       ← machine-readable key=value progress on stdout
          -stats_period 0.1      ← one progress block every ~100 ms
          <QUALITY_PRESET>
          -f mp4                 ← output may be a .part file, so name the muxer
          -y
          <output>
    """
    return [
        str(ffmpeg),
        "-hide_banner",
        "-nostdin",
        "-i", str(input_file),
        "-nostats",
        "-progress", "pipe:1",
        "-stats_period", str(PROGRESS_PERIOD),
        *QUALITY_PRESET,
        "-f", "mp4",
        "-y",
        str(output_file),
    ]


def build_probe_command(input_file: Path, ffprobe: Path = FFPROBE_BIN) -> list[str]:
    return [
        str(ffprobe),
        "-v", "quiet",            # suppress banner
        "-print_format", "json",  # machine-readable output
        "-show_format",           # duration, bitrate, etc.
        "-show_streams",          # per-stream codec info
        str(input_file),
    ]


def build_capability_command(listing: str, ffmpeg: Path = FFMPEG_BIN) -> list[str]:
    """*listing* is an ffmpeg list flag such as "-muxers" or "-encoders"."""
    return [str(ffmpeg), "-hide_banner", listing]


def command_as_string(cmd: list[str]) -> str:
    """Human-readable version of the command for logging."""
    return shlex.join(cmd)
