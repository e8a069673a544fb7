"""
The Stage Executor: one operation per logical pipeline stage.

Each operation builds the tool's argument list, runs it through the Process
Invoker and turns the outcome into a `StageResult`. Whether a failure stops
the file is decided by the stage's `required` flag; this module only reports.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from ..config.tools import (
    AUDIO_STREAM_SELECTOR,
    DV_PROFILE,
    DVH1_FLAG,
    FFMPEG,
    MKVEXTRACT,
    MP4BOX,
    MP4MUXER,
    SUBTITLE_STREAM_SELECTOR,
    SUBTITLE_TARGET_CODEC,
    VIDEO_TRACK_INDEX,
)
from ..domain.models import FrameRate, StageResult
from ..domain.transcript import LogTranscript
from ..utils.process_runner import ProcessInvoker
from ..utils.tool_locator import ToolLocator


@dataclass(frozen=True)
class Stage:
    """
    Static description of a stage.

    Attributes:
        name: Identifier used in results and exceptions.
        tool: Logical tool name resolved by the ToolLocator.
        start_message: Transcript line emitted before the tool runs.
        failure_label: Prefix of the diagnostic text on failure.
        required: A failing required stage fails the file. A failing optional
                  stage is noted and the file continues without its output.
        soft_failure_note: Transcript line emitted when an optional stage fails.
    """

    name: str
    tool: str
    start_message: str
    failure_label: str
    required: bool = True
    soft_failure_note: Optional[str] = None


EXTRACT_VIDEO = Stage(
    "extract_video", MKVEXTRACT, "Extracting video stream...", "Video extraction failed"
)
EXTRACT_AUDIO = Stage(
    "extract_audio", FFMPEG, "Extracting audio stream...", "Audio extraction failed"
)
EXTRACT_SUBTITLES = Stage(
    "extract_subtitles",
    FFMPEG,
    "Extracting subtitles...",
    "Subtitle extraction failed",
    required=False,
    soft_failure_note="Subtitle extraction failed, continuing...",
)
MULTIPLEX = Stage("multiplex", MP4MUXER, "Remuxing to MP4...", "MP4 muxing failed")
CONVERT_SUBTITLES = Stage(
    "convert_subtitles",
    FFMPEG,
    "Processing subtitles...",
    "Subtitle conversion failed",
    required=False,
    soft_failure_note="Subtitle conversion failed, keeping the MP4 without subtitles...",
)
MERGE_SUBTITLES = Stage(
    "merge_subtitles", MP4BOX, "Merging subtitles into MP4...", "Subtitle merging failed"
)

ALL_STAGES = (
    EXTRACT_VIDEO,
    EXTRACT_AUDIO,
    EXTRACT_SUBTITLES,
    MULTIPLEX,
    CONVERT_SUBTITLES,
    MERGE_SUBTITLES,
)


class StageExecutor:
    """
    Runs individual stages against the external tools.

    Args:
        invoker: The Process Invoker used for every tool call.
        locator: Resolves logical tool names to executables.
    """

    def __init__(self, invoker: Optional[ProcessInvoker] = None, locator: Optional[ToolLocator] = None):
        self.invoker = invoker or ProcessInvoker()
        self.locator = locator or ToolLocator()

    def run_stage(
        self, stage: Stage, args: List[str], artifact: Optional[Path] = None
    ) -> Tuple[StageResult, LogTranscript]:
        """
        Runs one stage's tool and interprets the outcome.

        Args:
            stage: The stage being run.
            args: Arguments for the stage's tool.
            artifact: The file the stage writes on success.

        Returns:
            The stage result and the stage transcript (start line, the
            invoker's transcript, and a note if an optional stage failed).
        """
        transcript = LogTranscript()
        transcript.append(stage.start_message)

        command = self.locator.resolve(stage.tool)
        outcome, invocation_log = self.invoker.run(command, args)
        transcript.extend(invocation_log)

        if outcome.exited_successfully:
            logger.debug(f"Stage {stage.name} succeeded")
            return StageResult(stage.name, True, produced_artifact=artifact), transcript

        diagnostic = f"{stage.failure_label}: {outcome.error_text}".rstrip()
        if diagnostic.endswith(":"):
            diagnostic = f"{diagnostic} exit status {outcome.return_code}"
        if stage.required:
            logger.error(f"Stage {stage.name} failed: {diagnostic}")
        else:
            logger.warning(f"Optional stage {stage.name} failed: {diagnostic}")
            if stage.soft_failure_note:
                transcript.append(stage.soft_failure_note)
        return StageResult(stage.name, False, diagnostic_text=diagnostic), transcript

    def extract_video(self, input_file: Path, video_file: Path) -> Tuple[StageResult, LogTranscript]:
        args = ["tracks", str(input_file), f"{VIDEO_TRACK_INDEX}:{video_file}"]
        return self.run_stage(EXTRACT_VIDEO, args, video_file)

    def extract_audio(self, input_file: Path, audio_file: Path) -> Tuple[StageResult, LogTranscript]:
        args = ["-i", str(input_file), "-map", AUDIO_STREAM_SELECTOR, "-c", "copy", str(audio_file), "-y"]
        return self.run_stage(EXTRACT_AUDIO, args, audio_file)

    def extract_subtitles(self, input_file: Path, subtitle_file: Path) -> Tuple[StageResult, LogTranscript]:
        args = ["-i", str(input_file), "-map", SUBTITLE_STREAM_SELECTOR, "-c", "copy", str(subtitle_file), "-y"]
        return self.run_stage(EXTRACT_SUBTITLES, args, subtitle_file)

    def multiplex(
        self, output_file: Path, video_file: Path, audio_file: Path, frame_rate: FrameRate
    ) -> Tuple[StageResult, LogTranscript]:
        args = [
            "-o", str(output_file),
            "-i", str(video_file),
            "--input-video-frame-rate", frame_rate.ratio,
            "-i", str(audio_file),
            "--dv-profile", DV_PROFILE,
            "--dvh1flag", DVH1_FLAG,
        ]
        return self.run_stage(MULTIPLEX, args, output_file)

    def convert_subtitles(self, subtitle_file: Path, converted_file: Path) -> Tuple[StageResult, LogTranscript]:
        args = ["-i", str(subtitle_file), "-c:s", SUBTITLE_TARGET_CODEC, str(converted_file), "-y"]
        return self.run_stage(CONVERT_SUBTITLES, args, converted_file)

    def merge_subtitles(
        self, primary_file: Path, converted_subtitles: Path, final_file: Path
    ) -> Tuple[StageResult, LogTranscript]:
        args = ["-add", str(primary_file), "-add", str(converted_subtitles), "-new", str(final_file)]
        return self.run_stage(MERGE_SUBTITLES, args, final_file)
