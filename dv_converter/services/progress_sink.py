"""
Reporting channel between the conversion core and whatever presents it.

The pipeline and the batch orchestrator write discrete log lines and progress
fractions to a sink. The sink owns presentation, buffering and clearing; the
core never reads anything back from it.
"""
from typing import List

from loguru import logger


class ProgressSink:
    """
    Base sink. Both operations are no-ops, so it also serves as a null sink.

    Subclasses override `log` and/or `progress`. Implementations must be
    cheap: they are called synchronously from the conversion thread.
    """

    def log(self, line: str):
        pass

    def progress(self, fraction: float):
        pass


class LoguruSink(ProgressSink):
    """
    Forwards transcript lines and progress to loguru.

    Records are bound with `transcript=True` so a handler can format them
    differently from developer diagnostics (see `main.py`).
    """

    def __init__(self):
        self._logger = logger.bind(transcript=True)
        self._last_percent = -1

    def log(self, line: str):
        if line.startswith("Error:") or line.startswith("❌"):
            self._logger.error(line)
        elif line.startswith(("✓", "✅", "🎉")):
            self._logger.success(line)
        else:
            self._logger.info(line)

    def progress(self, fraction: float):
        percent = int(fraction * 100)
        if percent != self._last_percent:
            self._last_percent = percent
            logger.debug(f"Progress: {percent}%")


class MemorySink(ProgressSink):
    """Keeps every line and fraction in memory, in arrival order."""

    def __init__(self):
        self.lines: List[str] = []
        self.fractions: List[float] = []

    def log(self, line: str):
        self.lines.append(line)

    def progress(self, fraction: float):
        self.fractions.append(fraction)


class ScaledProgressSink(ProgressSink):
    """
    Maps one item's progress into its slot of the batch's progress.

    Item `index` (0-based) of `total` reports fractions in [0, 1]; the wrapped
    sink receives them mapped into [index/total, (index+1)/total]. Reported
    values never decrease.
    """

    def __init__(self, inner: ProgressSink, index: int, total: int):
        self.inner = inner
        self.index = index
        self.total = max(total, 1)
        self._last = index / self.total

    def log(self, line: str):
        self.inner.log(line)

    def progress(self, fraction: float):
        fraction = min(max(fraction, 0.0), 1.0)
        scaled = (self.index + fraction) / self.total
        if scaled < self._last:
            return
        self._last = scaled
        self.inner.progress(scaled)
