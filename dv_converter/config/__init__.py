"""
Configuration Package for the Dolby Vision converter.

This package centralizes the static configuration of the application so that
tool names, fixed profile arguments and file naming rules live apart from the
pipeline logic that uses them.

This package includes settings for:
- Logging format and user-overridable settings loaded from `config.user.yaml`.
- The external tools the pipeline drives (mkvextract, ffmpeg, mp4muxer, MP4Box),
  the fixed Dolby Vision profile arguments, and scratch/output file naming.
"""
