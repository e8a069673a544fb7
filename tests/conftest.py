from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

from dv_converter.config.common import ConverterSettings
from dv_converter.pipeline.conversion_pipeline import ConversionPipeline
from dv_converter.services.stage_executor import StageExecutor
from dv_converter.utils.process_runner import ProcessInvoker, ProcessOutcome
from dv_converter.utils.tool_locator import ToolLocator


@dataclass
class Invocation:
    stage: str
    command: str
    args: List[str]


def classify(command: str, args: List[str]) -> str:
    """Names the stage an invocation belongs to from its command line."""
    if command == "mkvextract":
        return "extract_video"
    if command == "mp4muxer":
        return "multiplex"
    if command == "MP4Box":
        return "merge_subtitles"
    if "0:a:0" in args:
        return "extract_audio"
    if "0:s:0" in args:
        return "extract_subtitles"
    if "-c:s" in args:
        return "convert_subtitles"
    return "unknown"


def produced_file(stage: str, args: List[str]) -> Optional[Path]:
    if stage == "extract_video":
        return Path(args[2].split(":", 1)[1])
    if stage == "multiplex":
        return Path(args[1])
    if stage == "merge_subtitles":
        return Path(args[-1])
    if stage in ("extract_audio", "extract_subtitles", "convert_subtitles"):
        return Path(args[-2])
    return None


class FakeInvoker(ProcessInvoker):
    """
    Stands in for the real tools.

    Records every call, writes the file a successful tool would write, and
    fails the stages listed in `failures` (value: stderr text or a full
    ProcessOutcome). `fail_files` maps a 1-based file number to the stderr
    its video extraction fails with; a file starts at each mkvextract call.
    """

    def __init__(
        self,
        failures: Optional[Dict[str, Union[str, ProcessOutcome]]] = None,
        fail_files: Optional[Dict[int, str]] = None,
    ):
        super().__init__(timeout_seconds=None)
        self.failures = failures or {}
        self.fail_files = fail_files or {}
        self.calls: List[Invocation] = []

    @property
    def stages(self) -> List[str]:
        return [call.stage for call in self.calls]

    def _execute(self, command, args):
        stage = classify(command, args)
        self.calls.append(Invocation(stage, command, list(args)))
        file_number = self.stages.count("extract_video")

        failure = self.failures.get(stage)
        if stage == "extract_video" and file_number in self.fail_files:
            failure = self.fail_files[file_number]
        if isinstance(failure, ProcessOutcome):
            return failure
        if failure is not None:
            return ProcessOutcome(False, captured_stderr=failure, return_code=1)

        target = produced_file(stage, list(args))
        if target is not None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"data")
        return ProcessOutcome(True, return_code=0)


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    return tmp_path / "scratch"


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def movie(tmp_path: Path) -> Path:
    source_dir = tmp_path / "movies"
    source_dir.mkdir()
    path = source_dir / "movie.mkv"
    path.write_bytes(b"mkv")
    return path


@pytest.fixture
def make_pipeline(scratch_root: Path):
    def _make(invoker: ProcessInvoker, **kwargs) -> ConversionPipeline:
        settings = ConverterSettings(scratch_dir=scratch_root)
        executor = StageExecutor(invoker, ToolLocator(settings))
        return ConversionPipeline(executor=executor, settings=settings, **kwargs)

    return _make
