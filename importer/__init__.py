from .models import ClipInfo, ConversionError, ImportPhase, ImportState, ProbeResult
from .errors import OutputError, OutputErrorKind, ScanError, TranscodeError, TranscodeErrorKind
from .scanner import scan
from .output import OutputPlan, ensure_output_directory, plan_destination
from .transcoder import FfmpegTranscoder, Transcoder
from .orchestrator import ImportOrchestrator

__all__ = [
    "ClipInfo", "ConversionError", "ImportPhase", "ImportState", "ProbeResult",
    "OutputError", "OutputErrorKind", "ScanError", "TranscodeError", "TranscodeErrorKind",
    "scan",
    "OutputPlan", "ensure_output_directory", "plan_destination",
    "FfmpegTranscoder", "Transcoder",
    "ImportOrchestrator",
]
