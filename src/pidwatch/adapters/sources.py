"""Input source adapters implementing LineSource.

Sources yield raw lines with only the trailing line terminator removed.
Bytes are decoded as UTF-8, replacing invalid sequences, so malformed
device output never aborts the stream.
"""

import logging
import re
import subprocess
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
from typing import IO, Any

from pidwatch.core.errors import SourceError

logger = logging.getLogger(__name__)

LOGCAT_ARGS = ("logcat", "-v", "threadtime")

# USER PID PPID VSZ RSS WCHAN ADDR S NAME
PS_LINE = re.compile(r"^\S+\s+(\d+)\s+\d+\s+\d+\s+\d+\s+\S+\s+\S+\s+\w\s+(\S+)\s*$")


def _decode(raw: bytes | str) -> str:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return raw.rstrip("\r\n")


class StreamSource:
    """Reads lines from an already-open text or binary stream (e.g. stdin).

    A plain stream has no buffer history to discard, so clear() only logs.
    """

    def __init__(self, stream: IO[Any], name: str = "stream") -> None:
        self._stream = stream
        self.name = name

    def lines(self) -> Iterator[str]:
        # read raw bytes when a text stream exposes them, so decoding
        # errors are replaced rather than raised
        stream = getattr(self._stream, "buffer", self._stream)
        try:
            for raw in stream:
                yield _decode(raw)
        except (OSError, ValueError) as exc:
            raise SourceError(f"error reading {self.name}: {exc}") from exc

    def clear(self) -> None:
        logger.debug("%s cannot discard buffered history", self.name)

    def close(self) -> None:
        """Streams are owned by the caller and left open."""


class FileSource(StreamSource):
    """Replays a saved log file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        try:
            stream = self.path.open("rb")
        except OSError as exc:
            raise SourceError(f"cannot open {self.path}: {exc}") from exc
        super().__init__(stream, name=str(self.path))

    def close(self) -> None:
        self._stream.close()


def parse_ps_output(text: str) -> list[tuple[int, str]]:
    """Extract (pid, process name) pairs from ``ps`` output.

    The header row and lines that do not look like process rows are skipped.
    """
    processes = []
    for line in text.splitlines():
        match = PS_LINE.match(line.strip())
        if match is not None:
            processes.append((int(match.group(1)), match.group(2)))
    return processes


class AdbLogcatSource:
    """Streams ``adb logcat -v threadtime`` from a subprocess.

    Args:
        adb: Base adb command, including any device selection flags
            chosen by the caller (e.g. ("adb", "-s", "emulator-5554")).
        popen: Factory used to spawn subprocesses; defaults to
            subprocess.Popen and may be replaced in tests.
        run: Runner for one-shot commands; defaults to subprocess.run.
    """

    def __init__(
        self,
        adb: Sequence[str] = ("adb",),
        popen: Callable[..., Any] = subprocess.Popen,
        run: Callable[..., Any] = subprocess.run,
    ) -> None:
        self.adb = tuple(adb)
        self._popen = popen
        self._run = run
        self._process: Any = None

    @property
    def command(self) -> list[str]:
        return [*self.adb, *LOGCAT_ARGS]

    def _run_once(self, *args: str) -> Any:
        command = [*self.adb, *args]
        try:
            result = self._run(command, capture_output=True)
        except OSError as exc:
            raise SourceError(f"cannot run {' '.join(command)}: {exc}") from exc
        if result.returncode != 0:
            stderr = _decode(result.stderr or b"")
            raise SourceError(
                f"{' '.join(command)} exited with status {result.returncode}: {stderr}",
                returncode=result.returncode,
            )
        return result

    def clear(self) -> None:
        """Clear the device log buffer (``adb logcat -c``)."""
        logger.info("clearing device log buffer")
        self._run_once("logcat", "-c")

    def list_processes(self) -> list[tuple[int, str]]:
        """Snapshot running processes (``adb shell ps``) for registry seeding."""
        result = self._run_once("shell", "ps")
        return parse_ps_output(_decode(result.stdout or b""))

    def lines(self) -> Iterator[str]:
        try:
            self._process = self._popen(
                self.command, stdout=subprocess.PIPE, stderr=subprocess.PIPE
            )
        except OSError as exc:
            raise SourceError(f"cannot start {' '.join(self.command)}: {exc}") from exc

        process = self._process
        try:
            for raw in process.stdout:
                yield _decode(raw)
        except OSError as exc:
            raise SourceError(f"error reading logcat output: {exc}") from exc

        returncode = process.wait()
        if returncode != 0:
            stderr = _decode(process.stderr.read() if process.stderr else b"")
            raise SourceError(
                f"logcat exited with status {returncode}: {stderr}".rstrip(": "),
                returncode=returncode,
            )
        logger.info("logcat exited cleanly")

    def close(self) -> None:
        """Terminate the logcat subprocess if it is still running."""
        process = self._process
        if process is None:
            return
        self._process = None
        if process.poll() is None:
            process.kill()
            process.wait()
        for stream in (process.stdout, process.stderr):
            if stream is not None:
                stream.close()
