"""
Settings describing the external tools and the files they produce.

The argument shapes here must stay exactly as the tools expect them: the
pipeline's job is correct invocation, so these constants are the contract
with mkvextract, ffmpeg, mp4muxer and MP4Box.
"""

# --- Tool Names ---
# Logical tool names. The ToolLocator maps them to the executable to run.
MKVEXTRACT = "mkvextract"
FFMPEG = "ffmpeg"
MP4MUXER = "mp4muxer"
MP4BOX = "mp4box"
FFPROBE = "ffprobe"

# Tools the conversion stages invoke. ffprobe is only needed for the preflight probe.
PIPELINE_TOOLS = (MKVEXTRACT, FFMPEG, MP4MUXER, MP4BOX)

# Executable names searched for when no override is configured.
DEFAULT_EXECUTABLES = {
    MKVEXTRACT: "mkvextract",
    FFMPEG: "ffmpeg",
    MP4MUXER: "mp4muxer",
    MP4BOX: "MP4Box",
    FFPROBE: "ffprobe",
}

# --- Stream Selection ---
VIDEO_TRACK_INDEX = 0
AUDIO_STREAM_SELECTOR = "0:a:0"
SUBTITLE_STREAM_SELECTOR = "0:s:0"
SUBTITLE_TARGET_CODEC = "mov_text"

# --- Dolby Vision Profile ---
DV_PROFILE = "5"
DVH1_FLAG = "0"

# --- Scratch Artifact Names ---
# Formatted with the input file stem. They live in the per-run scratch dir.
SCRATCH_VIDEO_NAME = "{stem}_DV.hevc"
SCRATCH_AUDIO_NAME = "{stem}_audio.ec3"
SCRATCH_SUBTITLE_NAME = "{stem}_subs.srt"
SCRATCH_SUBTITLE_MP4_NAME = "{stem}_subs.mp4"

# --- Output Names ---
OUTPUT_NAME = "{stem}_dvh1.mp4"
OUTPUT_WITH_SUBS_NAME = "{stem}_dvh1_with_subs.mp4"

# Input container accepted when scanning directories.
INPUT_EXTENSIONS = (".mkv",)
