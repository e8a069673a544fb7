from datetime import datetime
from typing import Iterable, Optional, Tuple

from loguru import logger

from ..domain.models import BatchOutcome, ConversionRequest
from ..domain.transcript import LogTranscript
from ..services.logging_service import ErrorLog, SuccessLog
from ..services.progress_sink import ProgressSink, ScaledProgressSink
from ..utils.cancellation import CancellationToken
from ..utils.format_utils import format_timedelta, formatted_size
from .conversion_pipeline import ConversionPipeline


class BatchOrchestrator:
    """
    Runs the conversion pipeline over a queue of files, one after another.

    Files are processed in the order given. The first failing file stops the
    batch: later files are never started. There is no retry and no
    reordering.

    Args:
        pipeline: The single-file pipeline to run for each request.
        sink: Receives every transcript line and the batch progress.
        cancel_token: Checked before each file is started.
        success_log: If set, one entry is written per converted file.
        error_log: If set, a failed batch writes its reason and transcript.
    """

    def __init__(
        self,
        pipeline: Optional[ConversionPipeline] = None,
        sink: Optional[ProgressSink] = None,
        cancel_token: Optional[CancellationToken] = None,
        success_log: Optional[SuccessLog] = None,
        error_log: Optional[ErrorLog] = None,
    ):
        self.pipeline = pipeline or ConversionPipeline(cancel_token=cancel_token)
        self.sink = sink or ProgressSink()
        self.cancel_token = cancel_token
        self.success_log = success_log
        self.error_log = error_log

    def run(self, requests: Iterable[ConversionRequest]) -> Tuple[BatchOutcome, LogTranscript]:
        """
        Converts every request in order, halting on the first failure.

        Returns:
            The batch outcome and the full transcript. On failure the outcome
            carries the 1-based index of the failing file and its reason.
        """
        queue = list(requests)
        total_files = len(queue)
        batch = BatchOutcome(total_files=total_files)
        transcript = LogTranscript(sink=self.sink)

        if not queue:
            batch.failure_reason = "No files to process"
            transcript.append(f"❌ {batch.failure_reason}")
            return batch, transcript

        transcript.append(f"Starting batch processing of {total_files} files...")
        self.sink.progress(0.0)
        started = datetime.now()

        for index, request in enumerate(queue):
            position = index + 1
            if self.cancel_token is not None and self.cancel_token.is_cancelled:
                return self._halt(
                    batch, transcript, position, f"Batch processing cancelled at file {position}"
                )

            transcript.append(f"Processing file {position}/{total_files}: {request.display_name}")
            logger.info(f"[{position}/{total_files}] {request.input_path}")

            item_sink = ScaledProgressSink(self.sink, index, total_files)
            outcome, item_log = self.pipeline.convert(request, sink=item_sink)
            # the item's lines already reached the sink while it ran
            transcript.extend(item_log, notify=False)
            batch.items.append(outcome)

            if not outcome.success:
                transcript.append(f"File processing failed: {outcome.failure_reason}")
                return self._halt(
                    batch,
                    transcript,
                    position,
                    f"Batch processing failed at file {position}: {outcome.failure_reason}",
                )

            batch.processed_count += 1
            transcript.append(f"✅ File {position}/{total_files} completed")
            self._record_success(request, outcome)

        batch.success = True
        transcript.append(f"🎉 All {total_files} files processed successfully!")
        self.sink.progress(1.0)
        logger.info(
            f"Batch of {total_files} file(s) finished in {format_timedelta(datetime.now() - started)}"
        )
        return batch, transcript

    def _halt(self, batch: BatchOutcome, transcript: LogTranscript, position: int, reason: str):
        batch.success = False
        batch.halt_index = position
        batch.failure_reason = reason
        logger.error(reason)
        if self.error_log is not None:
            try:
                self.error_log.write_failure(reason, transcript)
            except Exception as log_err:
                logger.error(f"Could not write error report for file {position}: {log_err}")
        return batch, transcript

    def _record_success(self, request: ConversionRequest, outcome):
        if self.success_log is None:
            return
        try:
            self._write_success_entry(request, outcome)
        except Exception as log_err:
            logger.error(f"Could not write success report for {request.display_name}: {log_err}")

    def _write_success_entry(self, request: ConversionRequest, outcome):
        outputs = [str(path) for path in outcome.outputs]
        primary = outcome.outputs[0] if outcome.outputs else None
        size = primary.stat().st_size if primary is not None and primary.is_file() else 0
        self.success_log.write(
            {
                "input_file": str(request.input_path),
                "output_files": outputs,
                "output_size": formatted_size(size),
                "frame_rate": request.frame_rate.ratio,
                "subtitles_requested": request.include_subtitles,
                "subtitles_merged": outcome.subtitles_merged,
                "elapsed_seconds": round(outcome.elapsed_seconds, 2),
                "ended_datetime": datetime.now().isoformat(timespec="seconds"),
            }
        )
