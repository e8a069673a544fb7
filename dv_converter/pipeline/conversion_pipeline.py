from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from loguru import logger

from ..config.common import ConverterSettings
from ..config.tools import (
    FFPROBE,
    OUTPUT_NAME,
    OUTPUT_WITH_SUBS_NAME,
    SCRATCH_AUDIO_NAME,
    SCRATCH_SUBTITLE_MP4_NAME,
    SCRATCH_SUBTITLE_NAME,
    SCRATCH_VIDEO_NAME,
)
from ..domain.exceptions import DVConverterException, LocalFailureException, StageFailedException
from ..domain.media import MediaFile
from ..domain.models import ConversionRequest, PipelineOutcome, StageResult
from ..domain.scratch import ScratchSpace
from ..domain.transcript import LogTranscript
from ..services.progress_sink import ProgressSink
from ..services.stage_executor import StageExecutor
from ..utils.cancellation import CancellationToken
from ..utils.process_runner import ProcessInvoker
from ..utils.tool_locator import ToolLocator


class PipelineState(Enum):
    START = "start"
    PROBE = "probe"
    EXTRACT_VIDEO = "extract_video"
    EXTRACT_AUDIO = "extract_audio"
    EXTRACT_SUBTITLES = "extract_subtitles"
    MULTIPLEX = "multiplex"
    CONVERT_SUBTITLES = "convert_subtitles"
    MERGE_SUBTITLES = "merge_subtitles"
    CLEANUP = "cleanup"
    DONE = "done"


class ConversionPipeline:
    """
    Converts one Dolby Vision MKV into a dvh1 MP4.

    The stages run strictly in order:
    extract video -> extract audio -> [extract subtitles] -> multiplex
    -> [convert subtitles -> merge subtitles] -> cleanup.

    The bracketed stages only run when subtitles were requested and the
    previous subtitle stage succeeded. A failing required stage ends the file
    immediately; cleanup of the scratch directory runs whatever happened.
    Nothing is retried.
    """

    def __init__(
        self,
        executor: Optional[StageExecutor] = None,
        settings: Optional[ConverterSettings] = None,
        cancel_token: Optional[CancellationToken] = None,
        probe_inputs: bool = False,
    ):
        self.settings = settings or ConverterSettings()
        self.cancel_token = cancel_token
        self.probe_inputs = probe_inputs
        self.locator = ToolLocator(self.settings)
        self.executor = executor or StageExecutor(
            ProcessInvoker(
                timeout_seconds=self.settings.timeout_seconds,
                use_shell=self.settings.use_shell,
                cancel_token=cancel_token,
            ),
            self.locator,
        )
        self.state = PipelineState.START

    def convert(
        self, request: ConversionRequest, sink: Optional[ProgressSink] = None
    ) -> Tuple[PipelineOutcome, LogTranscript]:
        """
        Runs the full stage sequence for one file.

        Tool failures, local failures and cancellation are all returned as a
        failed outcome; this method does not raise for them.

        Args:
            request: The file and options to convert.
            sink: Receives transcript lines as they are produced and the
                  file's progress in [0, 1].

        Returns:
            The outcome and the transcript of everything that ran.
        """
        transcript = LogTranscript(sink=sink)
        outcome = PipelineOutcome(file_identity=request.display_name)
        scratch = ScratchSpace(self.settings.scratch_parent)
        started = datetime.now()
        self._set_state(PipelineState.START)

        try:
            self._run_stages(request, scratch, transcript, outcome, sink)
            outcome.success = True
        except StageFailedException as e:
            outcome.failure_reason = e.reason
        except DVConverterException as e:
            outcome.failure_reason = str(e)
        finally:
            self._set_state(PipelineState.CLEANUP)
            transcript.append("Cleaning up temporary files...")
            scratch.cleanup()
            outcome.elapsed_seconds = (datetime.now() - started).total_seconds()
            self._set_state(PipelineState.DONE)

        if outcome.success:
            transcript.append("Processing completed!")
            if sink is not None:
                sink.progress(1.0)
            logger.info(f"Converted {request.display_name} in {outcome.elapsed_seconds:.1f}s")
        else:
            logger.error(f"Conversion of {request.display_name} failed: {outcome.failure_reason}")
        return outcome, transcript

    def _set_state(self, state: PipelineState):
        logger.trace(f"Pipeline state: {self.state.value} -> {state.value}")
        self.state = state

    def _check_cancelled(self):
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled("Conversion cancelled")

    @staticmethod
    def _input_stem(request: ConversionRequest) -> str:
        stem = request.input_path.stem
        if not request.input_path.name or not stem or stem in (".", ".."):
            raise LocalFailureException(f"Invalid input path (no file name): '{request.input_path}'")
        return stem

    @staticmethod
    def _prepare_output_directory(directory: Path):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalFailureException(f"Cannot use output directory '{directory}': {e}") from e

    @staticmethod
    def _require(result: StageResult):
        if not result.success:
            raise StageFailedException(result.stage_name, result.diagnostic_text or result.stage_name)

    def _run_stages(
        self,
        request: ConversionRequest,
        scratch: ScratchSpace,
        transcript: LogTranscript,
        outcome: PipelineOutcome,
        sink: Optional[ProgressSink],
    ):
        stem = self._input_stem(request)
        if not request.input_path.is_file():
            raise LocalFailureException(f"Input file not found: '{request.input_path}'")
        self._prepare_output_directory(request.output_directory)

        include_subtitles = request.include_subtitles
        if self.probe_inputs:
            self._set_state(PipelineState.PROBE)
            media = MediaFile(request.input_path, ffprobe_cmd=self.locator.resolve(FFPROBE))
            transcript.append(media.summary())
            media.validate_for_conversion()
            if include_subtitles and not media.has_subtitles:
                transcript.append("No subtitle stream found, continuing without subtitles...")
                include_subtitles = False

        try:
            scratch.create()
        except OSError as e:
            raise LocalFailureException(f"Cannot create scratch directory: {e}") from e

        planned = 6 if include_subtitles else 3
        completed = 0

        def advance():
            nonlocal completed
            completed += 1
            if sink is not None:
                sink.progress(min(completed / planned, 1.0))

        # --- Step 1: Extract the Dolby Vision video stream ---
        self._check_cancelled()
        self._set_state(PipelineState.EXTRACT_VIDEO)
        video_file = scratch.path_for(SCRATCH_VIDEO_NAME.format(stem=stem))
        result, log = self.executor.extract_video(request.input_path, video_file)
        transcript.extend(log)
        self._require(result)
        advance()

        # --- Step 2: Extract the first audio stream ---
        self._check_cancelled()
        self._set_state(PipelineState.EXTRACT_AUDIO)
        audio_file = scratch.path_for(SCRATCH_AUDIO_NAME.format(stem=stem))
        result, log = self.executor.extract_audio(request.input_path, audio_file)
        transcript.extend(log)
        self._require(result)
        advance()

        # --- Step 3: Extract subtitles (optional, best-effort) ---
        subtitle_file: Optional[Path] = None
        if include_subtitles:
            self._check_cancelled()
            self._set_state(PipelineState.EXTRACT_SUBTITLES)
            candidate = scratch.path_for(SCRATCH_SUBTITLE_NAME.format(stem=stem))
            result, log = self.executor.extract_subtitles(request.input_path, candidate)
            transcript.extend(log)
            if result.success:
                subtitle_file = result.produced_artifact
            else:
                self._check_cancelled()
                # the two remaining subtitle stages will not run
                planned = 4
            advance()

        # --- Step 4: Remux into the dvh1 MP4 ---
        self._check_cancelled()
        self._set_state(PipelineState.MULTIPLEX)
        output_file = request.output_directory / OUTPUT_NAME.format(stem=stem)
        result, log = self.executor.multiplex(output_file, video_file, audio_file, request.frame_rate)
        transcript.extend(log)
        self._require(result)
        outcome.outputs = (output_file,)
        advance()

        if subtitle_file is None:
            return

        # --- Step 5: Convert subtitles to an MP4-embeddable format ---
        self._check_cancelled()
        self._set_state(PipelineState.CONVERT_SUBTITLES)
        subtitle_mp4 = scratch.path_for(SCRATCH_SUBTITLE_MP4_NAME.format(stem=stem))
        result, log = self.executor.convert_subtitles(subtitle_file, subtitle_mp4)
        transcript.extend(log)
        advance()
        if not result.success:
            self._check_cancelled()
            return

        # --- Step 6: Merge the subtitles into a second output file ---
        self._check_cancelled()
        self._set_state(PipelineState.MERGE_SUBTITLES)
        final_output = request.output_directory / OUTPUT_WITH_SUBS_NAME.format(stem=stem)
        result, log = self.executor.merge_subtitles(output_file, subtitle_mp4, final_output)
        transcript.extend(log)
        if not result.success:
            self._discard_partial_output(final_output)
            transcript.append(f"Output without subtitles kept: {output_file}")
            self._require(result)
        outcome.outputs = (output_file, final_output)
        outcome.subtitles_merged = True
        advance()

    @staticmethod
    def _discard_partial_output(path: Path):
        try:
            path.unlink()
            logger.debug(f"Removed partial output {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"Could not remove partial output {path}: {e}")
