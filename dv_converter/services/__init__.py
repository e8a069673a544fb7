"""
Services Package for the Dolby Vision converter.

This package contains the service layer: classes that carry out one concern of
a conversion for the pipelines above them.

- **Stage Executor (`StageExecutor`):**
  Runs one stage (extract video, extract audio, extract subtitles, multiplex,
  convert subtitles, merge subtitles) through the Process Invoker and turns
  the tool's outcome into a `StageResult`.

- **Progress Sinks (`ProgressSink` and subclasses):**
  The reporting channel for transcript lines and progress fractions.

- **Logging Service (`SuccessLog`, `ErrorLog`):**
  Persists converted files as YAML entries and failed runs as text reports,
  separate from the real-time console logging.
"""
