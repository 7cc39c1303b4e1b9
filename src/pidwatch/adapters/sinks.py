"""Output sink adapters implementing LineSink."""

import sys
from collections.abc import Iterable
from pathlib import Path
from typing import IO

from pidwatch.core.encoding.ansi import strip_ansi
from pidwatch.core.errors import SinkError


class _TextSink:
    """Shared line writing for stream-backed sinks."""

    name = "sink"

    def __init__(self, stream: IO[str], strip_color: bool) -> None:
        self._stream = stream
        self.strip_color = strip_color

    def write_lines(self, lines: Iterable[str]) -> None:
        """Write lines and flush so output appears as it is produced."""
        try:
            for line in lines:
                if self.strip_color:
                    line = strip_ansi(line)
                self._stream.write(line + "\n")
            self._stream.flush()
        except OSError as exc:
            raise SinkError(f"cannot write to {self.name}: {exc}", sink=self.name) from exc


class ConsoleSink(_TextSink):
    """Writes rendered lines to the console.

    Args:
        stream: Text stream to write to (default: sys.stdout at write time).
        strip_color: Remove escape codes before writing.
    """

    name = "console"

    def __init__(self, stream: IO[str] | None = None, strip_color: bool = False) -> None:
        super().__init__(stream if stream is not None else sys.stdout, strip_color)

    def close(self) -> None:
        try:
            self._stream.flush()
        except OSError as exc:
            raise SinkError(f"cannot flush console: {exc}", sink=self.name) from exc


class FileSink(_TextSink):
    """Writes rendered lines to a file.

    Escape codes are stripped by default so the file reads correctly
    without a terminal.

    Raises:
        SinkError: If the file cannot be created.
    """

    def __init__(self, path: str | Path, strip_color: bool = True) -> None:
        self.path = Path(path)
        self.name = str(self.path)
        try:
            stream = self.path.open("w", encoding="utf-8")
        except OSError as exc:
            raise SinkError(f"cannot create {self.path}: {exc}", sink=self.name) from exc
        super().__init__(stream, strip_color)

    def close(self) -> None:
        try:
            self._stream.close()
        except OSError as exc:
            raise SinkError(f"cannot close {self.path}: {exc}", sink=self.name) from exc


class InMemorySink:
    """Collects rendered lines in a list.

    Suitable for testing and for embedding the pipeline in other tools.
    """

    def __init__(self, strip_color: bool = False) -> None:
        self.strip_color = strip_color
        self.lines: list[str] = []
        self.closed = False

    def write_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.lines.append(strip_ansi(line) if self.strip_color else line)

    def close(self) -> None:
        self.closed = True

    @property
    def text(self) -> str:
        return "".join(line + "\n" for line in self.lines)
