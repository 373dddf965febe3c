"""
importer.summary
~~~~~~~~~~~~~~~~
Human-readable text for an ImportState. Shared by the window, the
headless runner and the completion notification.
"""

from __future__ import annotations

from typing import Sequence

from importer.models import ConversionError, ImportPhase, ImportState

ERROR_PREVIEW_LIMIT = 3

NO_CLIPS_MESSAGE = (
    "No AVCHD .MTS clips found. Look for AVCHD/BDMV/STREAM folders on the card."
)
NO_OUTPUT_SELECTED_MESSAGE = "No output folder selected. Import cancelled."
NO_READABLE_DROP_MESSAGE = "No readable folder or volume was dropped."


def scan_failed_message(cause: str) -> str:
    return f"Import failed: {cause}"


def output_failed_message(cause: str) -> str:
    return f"Unable to create output folder: {cause}"


# ── Window text ───────────────────────────────────────────────────────────────

_TITLES = {
    ImportPhase.IDLE:       "Drop an SD card or folder",
    ImportPhase.SCANNING:   "Scanning for AVCHD clips",
    ImportPhase.CONVERTING: "Converting to MP4",
    ImportPhase.COMPLETED:  "Import complete",
    ImportPhase.FAILED:     "Import failed",
}


def status_title(state: ImportState) -> str:
    return _TITLES[state.phase]


def status_detail(state: ImportState) -> str:
    if state.phase is ImportPhase.IDLE:
        return ("We will look for PRIVATE/AVCHD/BDMV/STREAM/*.MTS and save "
                "MP4 files to your Pictures folder.")
    if state.phase is ImportPhase.SCANNING:
        return "Looking for .MTS clips. Large cards may take a minute."
    if state.phase is ImportPhase.CONVERTING:
        if state.total_count > 0:
            return _clip_position(state)
        return "Preparing export session..."
    if state.phase is ImportPhase.FAILED:
        return state.message
    return completion_summary(state)


def progress_detail(state: ImportState) -> str:
    """"Clip 2 of 5 - 00001.MTS (40%)" while converting, "" otherwise."""
    if state.phase is not ImportPhase.CONVERTING or state.total_count <= 0:
        return ""
    return f"{_clip_position(state)} ({int(state.clip_progress * 100)}%)"


def completion_summary(state: ImportState) -> str:
    """"3 clips saved to Camcorder Imports/2025-12-23." and variants."""
    saved = state.success_count
    counted = f"{saved}" if not state.errors else f"{saved} of {state.total_count}"
    if state.output_folder is not None:
        location = f"{state.output_folder.parent.name}/{state.output_folder.name}"
        return f"{counted} clips saved to {location}."
    return f"{counted} clips saved."


def error_summary(errors: Sequence[ConversionError]) -> str | None:
    """First few per-clip errors plus a count of the rest; None if no errors."""
    if not errors:
        return None
    sample = [str(e) for e in errors[:ERROR_PREVIEW_LIMIT]]
    summary = "Some clips failed:\n" + "\n".join(sample)
    if len(errors) > len(sample):
        summary += f"\n...and {len(errors) - len(sample)} more."
    return summary


def notification_text(state: ImportState) -> tuple[str, str]:
    """(title, body) for the one-shot completion notification."""
    title = "Camcorder import complete"
    if not state.errors:
        where = str(state.output_folder) if state.output_folder else "your Pictures folder"
        return title, f"{state.success_count} clips are ready in {where}."
    return title, (f"{state.success_count} of {state.total_count} clips exported. "
                   "Some files failed.")


def _clip_position(state: ImportState) -> str:
    index = min(state.processed_count + 1, state.total_count)
    name = state.current_clip.name if state.current_clip else "Clip"
    return f"Clip {index} of {state.total_count} - {name}"
