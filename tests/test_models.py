import dataclasses
from pathlib import Path

import pytest

from dv_converter.domain.models import ConversionRequest, FrameRate

EXPECTED_RATIOS = {
    FrameRate.FILM_23976: ("24000/1001", "23.976 (24000/1001)"),
    FrameRate.FILM_24: ("24", "24.000 (24)"),
    FrameRate.TV_29970: ("30000/1001", "29.970 (30000/1001)"),
    FrameRate.TV_25: ("25", "25.000 (25)"),
    FrameRate.HFR_60: ("60", "60.000 (60)"),
    FrameRate.HFR_59940: ("60000/1001", "59.940 (60000/1001)"),
}


def test_frame_rate_set_is_closed_and_total() -> None:
    assert set(FrameRate) == set(EXPECTED_RATIOS)


@pytest.mark.parametrize("rate", list(FrameRate))
def test_frame_rate_mapping_is_fixed(rate: FrameRate) -> None:
    ratio, display = EXPECTED_RATIOS[rate]
    assert rate.ratio == ratio
    assert rate.ratio == rate.ratio
    assert rate.display == display
    assert str(rate) == display


@pytest.mark.parametrize(
    "text, expected",
    [
        ("FILM_23976", FrameRate.FILM_23976),
        ("film_23976", FrameRate.FILM_23976),
        ("23.976", FrameRate.FILM_23976),
        ("24000/1001", FrameRate.FILM_23976),
        ("24", FrameRate.FILM_24),
        ("24.000 (24)", FrameRate.FILM_24),
        ("29.97", FrameRate.TV_29970),
        ("25", FrameRate.TV_25),
        ("60", FrameRate.HFR_60),
        (" 59.940 ", FrameRate.HFR_59940),
    ],
)
def test_frame_rate_from_string(text: str, expected: FrameRate) -> None:
    assert FrameRate.from_string(text) is expected


@pytest.mark.parametrize("text", ["30", "120/1", "fast", ""])
def test_frame_rate_rejects_custom_rates(text: str) -> None:
    with pytest.raises(ValueError, match="Unsupported frame rate"):
        FrameRate.from_string(text)


def test_default_frame_rate_is_film() -> None:
    assert FrameRate.default() is FrameRate.FILM_23976


def test_conversion_request_is_immutable(tmp_path: Path) -> None:
    request = ConversionRequest(tmp_path / "a.mkv", tmp_path)
    assert request.frame_rate is FrameRate.FILM_23976
    assert request.include_subtitles is False
    assert request.display_name == "a.mkv"
    with pytest.raises(dataclasses.FrozenInstanceError):
        request.include_subtitles = True  # type: ignore[misc]
