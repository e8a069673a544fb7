"""
The append-only log shown to the user as an audit trail of a conversion.
"""
from typing import Iterable, Iterator, List, Optional, Union


class LogTranscript:
    """
    Ordered, append-only sequence of human-readable log lines.

    Every layer (invoker, stage, pipeline, batch) accumulates its own
    transcript and folds it into its caller's. Lines are never reordered or
    deduplicated, so the transcript reflects real execution order.

    A transcript may be bound to a sink; each line appended to it is then
    forwarded to `sink.log` as it arrives.
    """

    def __init__(self, lines: Optional[Iterable[str]] = None, sink=None):
        self._lines: List[str] = []
        self.sink = sink
        if lines:
            self.extend(lines)

    def append(self, line: str):
        self._lines.append(line)
        if self.sink is not None:
            self.sink.log(line)

    def extend(self, lines: Union["LogTranscript", Iterable[str]], notify: bool = True):
        """
        Appends every line of `lines` in order.

        Args:
            lines: Another transcript or any iterable of strings.
            notify: Forward the lines to the bound sink. Pass False when the
                    lines already reached the same sink.
        """
        for line in lines:
            self._lines.append(line)
            if notify and self.sink is not None:
                self.sink.log(line)

    @property
    def lines(self) -> tuple:
        return tuple(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._lines))

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index):
        return self._lines[index]

    def __str__(self) -> str:
        return "\n".join(self._lines)

    def __repr__(self) -> str:
        return f"LogTranscript({len(self._lines)} lines)"
