"""
Command-Line Interface (CLI) setup for the Dolby Vision converter.

This module uses Python's `argparse` to define and parse the command-line
arguments, and turns the positional inputs into the ordered queue of
conversion requests the batch orchestrator consumes.
"""
import argparse
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from .config.tools import INPUT_EXTENSIONS
from .domain.models import ConversionRequest, FrameRate
from .utils.format_utils import has_extension


def _frame_rate(value: str) -> FrameRate:
    try:
        return FrameRate.from_string(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _timeout(value: str) -> float:
    try:
        timeout = float(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid timeout '{value}'") from e
    if timeout < 0:
        raise argparse.ArgumentTypeError("timeout must not be negative")
    return timeout


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert Dolby Vision MKV files to dvh1 MP4 using mkvextract, ffmpeg, mp4muxer and MP4Box."
    )
    parser.add_argument(
        "inputs", nargs="*", type=Path,
        help="MKV files to convert, or directories whose MKV files are queued (in name order).",
    )
    parser.add_argument(
        "-o", "--output-dir", type=Path, default=None,
        help="Directory receiving the converted files (default: current directory).",
    )
    parser.add_argument(
        "--subtitles", action="store_true",
        help="Also extract the first subtitle track and write a *_dvh1_with_subs.mp4 copy.",
    )
    parser.add_argument(
        "--frame-rate", type=_frame_rate, default=FrameRate.default(),
        help="Video frame rate passed to mp4muxer: "
             + ", ".join(rate.short for rate in FrameRate)
             + f" (default: {FrameRate.default().short}).",
    )
    parser.add_argument(
        "--timeout", type=_timeout, default=None,
        help="Seconds before a single tool invocation is killed (0 disables; default from config).",
    )
    parser.add_argument(
        "--temp-work-dir", type=Path, default=None,
        help="Directory for scratch files. Useful for pointing to a RAM disk.",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="User configuration YAML (default: config.user.yaml at the project root).",
    )
    parser.add_argument(
        "--probe", action="store_true",
        help="Probe each input with ffprobe before converting it.",
    )
    parser.add_argument(
        "--no-report", action="store_true",
        help="Do not write conversion_log.yaml / conversion_error.txt to the output directory.",
    )
    parser.add_argument(
        "--check-tools", action="store_true",
        help="Only check that the external tools can be found, then exit.",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level.",
    )
    parser.add_argument(
        "--debug", dest="debug_mode", action="store_true",
        help="Shortcut for --log-level DEBUG.",
    )
    return parser


def get_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments.

    Returns:
        argparse.Namespace: The parsed arguments. `output_dir` is resolved to
                            the current directory when omitted.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.inputs and not args.check_tools:
        parser.error("at least one input file or directory is required")
    if args.output_dir is None:
        args.output_dir = Path.cwd()
    if args.temp_work_dir is not None:
        temp_dir_path = args.temp_work_dir
        if not temp_dir_path.is_dir():
            try:
                temp_dir_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                parser.error(
                    f"The specified temporary working directory '{temp_dir_path}' is not a valid directory "
                    f"and could not be created: {e}"
                )
        args.temp_work_dir = temp_dir_path.resolve()
    return args


def collect_input_files(inputs: Sequence[Path]) -> List[Path]:
    """
    Expands the positional inputs into the ordered file queue.

    Files are kept in the order given, whatever their extension; directories
    contribute their MKV files sorted by name (non-recursive). A path seen
    twice is queued once, at its first position. Paths that do not exist are
    queued as given so the pipeline reports them.
    """
    queue: List[Path] = []
    seen = set()

    def add(path: Path):
        key = path.resolve()
        if key in seen:
            logger.debug(f"Skipping duplicate input {path}")
            return
        seen.add(key)
        queue.append(path)

    for item in inputs:
        if item.is_dir():
            found = sorted(
                (p for p in item.iterdir() if p.is_file() and has_extension(p, INPUT_EXTENSIONS)),
                key=lambda p: p.name.lower(),
            )
            if not found:
                logger.warning(f"No MKV files found in {item}")
            for path in found:
                add(path)
        else:
            add(item)
    return queue


def build_requests(args: argparse.Namespace) -> List[ConversionRequest]:
    return [
        ConversionRequest(
            input_path=path,
            output_directory=args.output_dir,
            include_subtitles=args.subtitles,
            frame_rate=args.frame_rate,
        )
        for path in collect_input_files(args.inputs)
    ]
