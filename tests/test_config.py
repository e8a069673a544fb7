import sys
from pathlib import Path

import pytest

from dv_converter.config.common import DEFAULT_TIMEOUT_SECONDS, ConverterSettings, load_settings
from dv_converter.config.tools import MP4BOX, MKVEXTRACT
from dv_converter.utils.tool_locator import ToolLocator


def test_missing_config_gives_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "absent.yaml")

    assert settings == ConverterSettings()
    assert settings.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert settings.use_shell is False


def test_config_values_are_loaded(tmp_path: Path) -> None:
    config = tmp_path / "config.user.yaml"
    config.write_text(
        "paths:\n"
        f"  tools_dir: {tmp_path / 'bin'}\n"
        f"  scratch_dir: {tmp_path / 'ram'}\n"
        "tools:\n"
        "  MP4Box: /opt/gpac/MP4Box\n"
        "timeout_seconds: 600\n"
        "use_shell: true\n",
        encoding="utf-8",
    )
    settings = load_settings(config)

    assert settings.tools_dir == tmp_path / "bin"
    assert settings.scratch_dir == tmp_path / "ram"
    assert settings.scratch_parent == tmp_path / "ram"
    assert settings.tool_overrides == {"mp4box": "/opt/gpac/MP4Box"}
    assert settings.timeout_seconds == 600
    assert settings.use_shell is True


def test_zero_timeout_disables_the_bound(tmp_path: Path) -> None:
    config = tmp_path / "c.yaml"
    config.write_text("timeout_seconds: 0\n", encoding="utf-8")

    assert load_settings(config).timeout_seconds is None


@pytest.mark.parametrize("content", ["paths: [unclosed\n", "- just\n- a list\n", "timeout_seconds: -5\n"])
def test_invalid_config_falls_back_to_defaults(tmp_path: Path, content: str) -> None:
    config = tmp_path / "c.yaml"
    config.write_text(content, encoding="utf-8")

    assert load_settings(config) == ConverterSettings()


def test_locator_falls_back_to_path_names() -> None:
    locator = ToolLocator(ConverterSettings())

    assert locator.resolve(MKVEXTRACT) == "mkvextract"
    assert locator.resolve(MP4BOX) == "MP4Box"


def test_locator_prefers_tools_dir(tmp_path: Path) -> None:
    exe = "mkvextract.exe" if sys.platform == "win32" else "mkvextract"
    (tmp_path / exe).write_text("", encoding="utf-8")
    locator = ToolLocator(ConverterSettings(tools_dir=tmp_path))

    assert locator.resolve(MKVEXTRACT) == str(tmp_path / exe)
    # not present in tools_dir, so PATH is used
    assert locator.resolve(MP4BOX) == "MP4Box"


def test_locator_override_wins(tmp_path: Path) -> None:
    settings = ConverterSettings(tools_dir=tmp_path, tool_overrides={"mkvextract": "/usr/local/bin/mkvextract"})

    assert ToolLocator(settings).resolve(MKVEXTRACT) == "/usr/local/bin/mkvextract"


def test_verify_all_reports_missing_tools(tmp_path: Path) -> None:
    settings = ConverterSettings(tool_overrides={"mkvextract": str(tmp_path / "missing-mkvextract")})
    found = ToolLocator(settings).verify_all([MKVEXTRACT])

    assert found == {MKVEXTRACT: None}
