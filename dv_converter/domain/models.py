"""
Data model of a conversion: requests, frame rates and results.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class FrameRate(Enum):
    """
    The closed set of frame rates accepted by the muxer.

    Each member carries a display string and the ratio string that is passed
    verbatim to `mp4muxer --input-video-frame-rate`.
    """

    FILM_23976 = ("23.976 (24000/1001)", "24000/1001")
    FILM_24 = ("24.000 (24)", "24")
    TV_29970 = ("29.970 (30000/1001)", "30000/1001")
    TV_25 = ("25.000 (25)", "25")
    HFR_60 = ("60.000 (60)", "60")
    HFR_59940 = ("59.940 (60000/1001)", "60000/1001")

    def __init__(self, display: str, ratio: str):
        self.display = display
        self.ratio = ratio

    @property
    def short(self) -> str:
        """Decimal form without the ratio, e.g. "23.976"."""
        return self.display.split(" ", 1)[0]

    def __str__(self) -> str:
        return self.display

    @classmethod
    def default(cls) -> "FrameRate":
        return cls.FILM_23976

    @classmethod
    def from_string(cls, value: str) -> "FrameRate":
        """
        Parses a frame rate from user input.

        Accepts the member name (case-insensitive, e.g. "film_23976"), the
        display string, the ratio string ("24000/1001") or the decimal form
        ("23.976", "24", "24.000").

        Raises:
            ValueError: If the value matches no member.
        """
        text = value.strip()
        for member in cls:
            if text.upper() == member.name or text == member.display or text == member.ratio:
                return member
        try:
            number = float(text)
        except ValueError:
            number = None
        if number is not None:
            for member in cls:
                if abs(float(member.short) - number) < 1e-6:
                    return member
        choices = ", ".join(member.short for member in cls)
        raise ValueError(f"Unsupported frame rate '{value}'. Choose one of: {choices}")


@dataclass(frozen=True)
class ConversionRequest:
    """
    One file to convert and the options to convert it with.

    Immutable once a pipeline run starts.
    """

    input_path: Path
    output_directory: Path
    include_subtitles: bool = False
    frame_rate: FrameRate = FrameRate.FILM_23976

    @property
    def display_name(self) -> str:
        return self.input_path.name or str(self.input_path)


@dataclass(frozen=True)
class StageResult:
    """
    Outcome of one pipeline stage.

    Attributes:
        stage_name: Logical stage name, e.g. "extract_video".
        success: Whether the stage's tool reported success.
        diagnostic_text: Failure description including the tool's stderr.
        produced_artifact: File the stage wrote, passed on to later stages.
    """

    stage_name: str
    success: bool
    diagnostic_text: Optional[str] = None
    produced_artifact: Optional[Path] = None


@dataclass
class PipelineOutcome:
    """
    Result of converting one file.

    Created when the pipeline starts and finalized when it ends.
    """

    file_identity: str
    success: bool = False
    failure_reason: Optional[str] = None
    outputs: Tuple[Path, ...] = ()
    subtitles_merged: bool = False
    elapsed_seconds: float = 0.0


@dataclass
class BatchOutcome:
    """
    Result of a batch run.

    `halt_index` is the 1-based position of the file that stopped the batch.
    """

    total_files: int
    processed_count: int = 0
    success: bool = False
    failure_reason: Optional[str] = None
    halt_index: Optional[int] = None
    items: list = field(default_factory=list)
