from pathlib import Path
from pprint import pformat
from typing import List, Optional

import ffmpeg
from loguru import logger

from .exceptions import MediaProbeException


class MediaFile:
    """
    Represents an input container and the streams it carries.

    When instantiated with a file path, this class uses `ffprobe` (via the
    ffmpeg-python library) to analyze the file and sorts its streams by type.
    The pipeline uses it as an optional preflight: a file without a video or
    audio stream fails before any scratch artifact is written, and a file
    without subtitles skips the subtitle branch.

    Attributes:
        path (Path): The absolute path to the media file.
        filename (str): The name of the file, including its extension.
        probe (dict): The raw `ffprobe` output as a nested dictionary.
        video_streams (list): Stream dictionaries of type video.
        audio_streams (list): Stream dictionaries of type audio.
        subtitle_streams (list): Stream dictionaries of type subtitle.
    """

    def __init__(self, path: Path, ffprobe_cmd: str = "ffprobe"):
        """
        Probes the file at `path`.

        Args:
            path: The media file to analyze.
            ffprobe_cmd: The ffprobe executable to run.

        Raises:
            MediaProbeException: If the file does not exist or ffprobe fails.
        """
        if not path.is_file():
            raise MediaProbeException(f"Media file not found: {path}")

        self.path: Path = path.resolve()
        self.filename: str = self.path.name
        self.probe: dict = {}
        self.video_streams: List[dict] = []
        self.audio_streams: List[dict] = []
        self.subtitle_streams: List[dict] = []

        try:
            self.probe = ffmpeg.probe(str(self.path), cmd=ffprobe_cmd)
            logger.trace(f"Probe data for {self.filename}:\n{pformat(self.probe)}")
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else e.stderr
            raise MediaProbeException(f"Failed to probe media file {self.path}: {(stderr or '').strip()}") from e
        except FileNotFoundError as e:
            raise MediaProbeException(f"ffprobe not found ('{ffprobe_cmd}'): {e}") from e

        self.set_streams()

    def set_streams(self):
        for stream in self.probe.get("streams", []):
            codec_type = stream.get("codec_type")
            if codec_type == "video":
                self.video_streams.append(stream)
            elif codec_type == "audio":
                self.audio_streams.append(stream)
            elif codec_type == "subtitle":
                self.subtitle_streams.append(stream)
        logger.debug(
            f"{self.filename}: {len(self.video_streams)} video, {len(self.audio_streams)} audio, "
            f"{len(self.subtitle_streams)} subtitle stream(s)"
        )

    @property
    def has_subtitles(self) -> bool:
        return bool(self.subtitle_streams)

    @property
    def vcodec(self) -> Optional[str]:
        if not self.video_streams:
            return None
        return str(self.video_streams[0].get("codec_name", "")).lower() or None

    def validate_for_conversion(self):
        """
        Checks that the file has the streams the mandatory stages extract.

        Raises:
            MediaProbeException: If no video or no audio stream is present.
        """
        if not self.video_streams:
            raise MediaProbeException(f"No video stream found in {self.filename}")
        if not self.audio_streams:
            raise MediaProbeException(f"No audio stream found in {self.filename}")

    def summary(self) -> str:
        codec = self.vcodec or "unknown"
        return (
            f"Input streams: video={len(self.video_streams)} ({codec}), "
            f"audio={len(self.audio_streams)}, subtitles={len(self.subtitle_streams)}"
        )
