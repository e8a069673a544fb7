"""
Main entry point for the Dolby Vision converter.

This script parses the command-line arguments, configures logging, and runs
the batch of requested conversions, printing the final status the way the
desktop front end shows it.
"""

import signal
import sys

from loguru import logger

from .cli import build_requests, get_args
from .config.common import LOGGER_FORMAT, TRANSCRIPT_LOGGER_FORMAT, load_settings
from .config.tools import FFPROBE, PIPELINE_TOOLS
from .pipeline.batch import BatchOrchestrator
from .pipeline.conversion_pipeline import ConversionPipeline
from .services.logging_service import ErrorLog, SuccessLog
from .services.progress_sink import LoguruSink
from .utils.cancellation import CancellationToken
from .utils.tool_locator import ToolLocator


def configure_logger(level: str):
    """Sends diagnostics and transcript lines to stderr with separate formats."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=LOGGER_FORMAT,
        filter=lambda record: not record["extra"].get("transcript"),
    )
    logger.add(
        sys.stderr,
        level="INFO",
        format=TRANSCRIPT_LOGGER_FORMAT,
        filter=lambda record: bool(record["extra"].get("transcript")),
    )


def main(argv=None) -> int:
    """
    Runs the converter and returns the process exit code.

    0 means every file was converted, 1 means the batch failed or a tool is
    missing; argparse exits with 2 on usage errors.
    """
    args = get_args(argv)
    configure_logger("DEBUG" if args.debug_mode else args.log_level)
    logger.debug(f"Parsed arguments: {args}")

    settings = load_settings(args.config)
    if args.timeout is not None:
        settings.timeout_seconds = args.timeout or None
    if args.temp_work_dir is not None:
        settings.scratch_dir = args.temp_work_dir

    locator = ToolLocator(settings)
    if args.check_tools:
        tools = PIPELINE_TOOLS + ((FFPROBE,) if args.probe else ())
        found = locator.verify_all(tools)
        return 0 if all(found.values()) else 1

    requests = build_requests(args)
    if not requests:
        logger.error("No input files to process.")
        return 1

    cancel_token = CancellationToken()

    def _on_interrupt(signum, frame):
        logger.warning("Interrupted. Stopping after the running command is killed...")
        cancel_token.cancel()

    pipeline = ConversionPipeline(settings=settings, cancel_token=cancel_token, probe_inputs=args.probe)
    orchestrator = BatchOrchestrator(
        pipeline,
        sink=LoguruSink(),
        cancel_token=cancel_token,
        success_log=None if args.no_report else SuccessLog(args.output_dir),
        error_log=None if args.no_report else ErrorLog(args.output_dir),
    )

    previous_handler = signal.signal(signal.SIGINT, _on_interrupt)
    try:
        outcome, _ = orchestrator.run(requests)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if outcome.success:
        logger.success("✅ Processing completed successfully!")
        return 0
    logger.error(f"❌ Processing failed: {outcome.failure_reason}")
    return 1


def cli_entry():
    sys.exit(main())

