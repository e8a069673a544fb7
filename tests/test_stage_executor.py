from pathlib import Path

import pytest
from conftest import FakeInvoker

from dv_converter.config.common import ConverterSettings
from dv_converter.domain.models import FrameRate
from dv_converter.services.stage_executor import (
    ALL_STAGES,
    CONVERT_SUBTITLES,
    EXTRACT_SUBTITLES,
    StageExecutor,
)
from dv_converter.utils.process_runner import ProcessOutcome
from dv_converter.utils.tool_locator import ToolLocator


@pytest.fixture
def executor(fake_invoker: FakeInvoker) -> StageExecutor:
    return StageExecutor(fake_invoker, ToolLocator(ConverterSettings()))


def test_argument_shapes_match_the_tools(executor: StageExecutor, fake_invoker: FakeInvoker, tmp_path: Path) -> None:
    src = tmp_path / "in.mkv"
    video = tmp_path / "in_DV.hevc"
    audio = tmp_path / "in_audio.ec3"
    subs = tmp_path / "in_subs.srt"
    subs_mp4 = tmp_path / "in_subs.mp4"
    out = tmp_path / "in_dvh1.mp4"
    final = tmp_path / "in_dvh1_with_subs.mp4"

    executor.extract_video(src, video)
    executor.extract_audio(src, audio)
    executor.extract_subtitles(src, subs)
    executor.multiplex(out, video, audio, FrameRate.TV_29970)
    executor.convert_subtitles(subs, subs_mp4)
    executor.merge_subtitles(out, subs_mp4, final)

    commands = [(call.command, call.args) for call in fake_invoker.calls]
    assert commands == [
        ("mkvextract", ["tracks", str(src), f"0:{video}"]),
        ("ffmpeg", ["-i", str(src), "-map", "0:a:0", "-c", "copy", str(audio), "-y"]),
        ("ffmpeg", ["-i", str(src), "-map", "0:s:0", "-c", "copy", str(subs), "-y"]),
        (
            "mp4muxer",
            [
                "-o", str(out),
                "-i", str(video),
                "--input-video-frame-rate", "30000/1001",
                "-i", str(audio),
                "--dv-profile", "5",
                "--dvh1flag", "0",
            ],
        ),
        ("ffmpeg", ["-i", str(subs), "-c:s", "mov_text", str(subs_mp4), "-y"]),
        ("MP4Box", ["-add", str(out), "-add", str(subs_mp4), "-new", str(final)]),
    ]


def test_success_carries_the_artifact_and_transcript(executor: StageExecutor, tmp_path: Path) -> None:
    video = tmp_path / "v.hevc"
    result, transcript = executor.extract_video(tmp_path / "in.mkv", video)

    assert result.success is True
    assert result.stage_name == "extract_video"
    assert result.produced_artifact == video
    assert transcript.lines[0] == "Extracting video stream..."
    assert transcript.lines[1].startswith("$ mkvextract tracks ")
    assert transcript.lines[-1] == "✓ Command completed successfully"


def test_required_failure_carries_stderr(tmp_path: Path) -> None:
    invoker = FakeInvoker(failures={"multiplex": "invalid frame rate\n"})
    executor = StageExecutor(invoker, ToolLocator(ConverterSettings()))
    result, transcript = executor.multiplex(
        tmp_path / "o.mp4", tmp_path / "v.hevc", tmp_path / "a.ec3", FrameRate.FILM_24
    )

    assert result.success is False
    assert result.produced_artifact is None
    assert result.diagnostic_text == "MP4 muxing failed: invalid frame rate"
    assert transcript.lines[-1] == "Error: invalid frame rate"


def test_optional_failure_adds_a_note(tmp_path: Path) -> None:
    invoker = FakeInvoker(failures={"extract_subtitles": "Stream map '0:s:0' matches no streams."})
    executor = StageExecutor(invoker, ToolLocator(ConverterSettings()))
    result, transcript = executor.extract_subtitles(tmp_path / "in.mkv", tmp_path / "s.srt")

    assert result.success is False
    assert "matches no streams" in result.diagnostic_text
    assert transcript.lines[-1] == "Subtitle extraction failed, continuing..."


def test_failure_without_stderr_reports_exit_status(tmp_path: Path) -> None:
    invoker = FakeInvoker(failures={"extract_audio": ProcessOutcome(False, return_code=2)})
    executor = StageExecutor(invoker, ToolLocator(ConverterSettings()))
    result, _ = executor.extract_audio(tmp_path / "in.mkv", tmp_path / "a.ec3")

    assert result.diagnostic_text == "Audio extraction failed: exit status 2"


def test_launch_failure_is_reported_as_stage_failure(tmp_path: Path) -> None:
    launch_error = ProcessOutcome(False, launch_error="Failed to execute command mkvextract: not found")
    invoker = FakeInvoker(failures={"extract_video": launch_error})
    executor = StageExecutor(invoker, ToolLocator(ConverterSettings()))
    result, transcript = executor.extract_video(tmp_path / "in.mkv", tmp_path / "v.hevc")

    assert result.success is False
    assert result.diagnostic_text == "Video extraction failed: Failed to execute command mkvextract: not found"
    assert transcript.lines[-1] == "Error: Failed to execute command mkvextract: not found"


def test_only_subtitle_extraction_and_conversion_are_optional() -> None:
    optional = {stage.name for stage in ALL_STAGES if not stage.required}
    assert optional == {EXTRACT_SUBTITLES.name, CONVERT_SUBTITLES.name}


def test_configured_tool_override_is_used(fake_invoker: FakeInvoker, tmp_path: Path) -> None:
    settings = ConverterSettings(tool_overrides={"mp4box": "/opt/gpac/MP4Box"})
    executor = StageExecutor(fake_invoker, ToolLocator(settings))
    executor.merge_subtitles(tmp_path / "o.mp4", tmp_path / "s.mp4", tmp_path / "f.mp4")

    assert fake_invoker.calls[0].command == "/opt/gpac/MP4Box"
