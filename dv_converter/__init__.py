"""
Dolby Vision MKV to dvh1 MP4 converter.

The package drives external tools (mkvextract, ffmpeg, mp4muxer, MP4Box) in a
fixed order for each queued file:

    from dv_converter.domain.models import ConversionRequest, FrameRate
    from dv_converter.pipeline.batch import BatchOrchestrator

    outcome, transcript = BatchOrchestrator().run([
        ConversionRequest(Path("movie.mkv"), Path("out"), frame_rate=FrameRate.FILM_23976),
    ])

Front ends consume progress and log lines through a `ProgressSink`
(`dv_converter.services.progress_sink`); `main.py` is the command-line one.
"""
