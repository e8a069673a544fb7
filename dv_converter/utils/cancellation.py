"""
Cooperative cancellation for running conversions.
"""
import threading

from ..domain.exceptions import ConversionCancelledException


class CancellationToken:
    """
    A thread-safe flag shared between the caller and a running batch.

    The caller (e.g. a signal handler or a GUI thread) calls `cancel()`.
    The Process Invoker polls the token while a child process runs and kills
    the process once it fires; the pipeline checks it between stages.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, message: str = "Conversion cancelled"):
        if self._event.is_set():
            raise ConversionCancelledException(message)
