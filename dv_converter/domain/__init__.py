"""
This package contains the core domain models of the Dolby Vision converter.

The domain layer describes what a conversion is (a request, its frame rate,
the results of its stages and of the whole batch) independently of how the
external tools are run or how progress is displayed.

Modules:
    exceptions.py: Exception types raised and handled inside the pipeline.
    models.py: FrameRate, ConversionRequest and the stage/item/batch results.
    transcript.py: The append-only LogTranscript shown to the user.
    scratch.py: The per-run scratch directory holding intermediate artifacts.
    media.py: The optional ffprobe-based preflight of an input file.
"""
