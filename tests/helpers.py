"""Line builders and fakes shared by unit and feature tests."""

from collections.abc import Iterable, Iterator

TIMESTAMP = "03-14 10:22:01.123"


def logcat_line(
    pid: int,
    tag: str,
    message: str,
    level: str = "I",
    tid: int | None = None,
    timestamp: str = TIMESTAMP,
) -> str:
    """Build a header line in the threadtime format."""
    tid = pid if tid is None else tid
    return f"{timestamp} {pid:5d} {tid:5d} {level} {tag}: {message}"


def start_line(pid: int, process: str, announcer: int = 1000) -> str:
    """Build an ActivityManager 'Start proc' announcement."""
    return logcat_line(
        announcer,
        "ActivityManager",
        f"Start proc {pid}:{process}/u0a123 for activity {process}/.MainActivity",
    )


def death_line(pid: int, process: str, announcer: int = 1000) -> str:
    """Build an ActivityManager 'has died' announcement."""
    return logcat_line(announcer, "ActivityManager", f"Process {process} (pid {pid}) has died")


class ListSource:
    """LineSource replaying a fixed list of lines, optionally failing at the end."""

    def __init__(self, lines: Iterable[str], error: BaseException | None = None) -> None:
        self._lines = list(lines)
        self._error = error
        self.cleared = False
        self.closed = False

    def lines(self) -> Iterator[str]:
        yield from self._lines
        if self._error is not None:
            raise self._error

    def clear(self) -> None:
        self.cleared = True

    def close(self) -> None:
        self.closed = True
