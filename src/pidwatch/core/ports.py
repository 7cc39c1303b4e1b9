"""Port interfaces for input sources and output sinks.

These protocols define the contracts that adapters must implement.
The supervisor depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Iterable, Iterator
from typing import Protocol, runtime_checkable


@runtime_checkable
class LineSource(Protocol):
    """Port for raw log line input.

    Adapters implementing this protocol produce an ordered sequence of
    text lines. Examples: AdbLogcatSource, FileSource, StreamSource.
    """

    def lines(self) -> Iterator[str]:
        """Yield raw lines without their line terminator.

        Blocks until a line is available. Raises SourceError when the
        source fails or terminates unexpectedly.
        """
        ...

    def clear(self) -> None:
        """Discard history buffered by the source before streaming."""
        ...

    def close(self) -> None:
        """Release resources held by the source."""
        ...


@runtime_checkable
class LineSink(Protocol):
    """Port for rendered output.

    Adapters implementing this protocol accept pre-rendered lines.
    Examples: ConsoleSink, FileSink, InMemorySink.
    """

    def write_lines(self, lines: Iterable[str]) -> None:
        """Write rendered lines. Raises SinkError on failure."""
        ...

    def close(self) -> None:
        """Flush and release the sink."""
        ...
