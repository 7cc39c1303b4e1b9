"""Core domain models for device log records and process lifecycles."""

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum


class LogLevel(IntEnum):
    """Severity of a log record, ordered from least to most severe.

    UNKNOWN is a sentinel for unrecognized level characters and sorts
    below VERBOSE so any minimum level above VERBOSE filters it out.
    """

    UNKNOWN = -1
    VERBOSE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5
    SILENT = 6

    @property
    def letter(self) -> str:
        """Single-character indicator used in rendered output."""
        return _LEVEL_LETTERS.get(self, "?")

    @classmethod
    def from_letter(cls, letter: str) -> "LogLevel":
        """Map a logcat priority character to a level (case-insensitive).

        Args:
            letter: The priority character from a header line.

        Returns:
            The matching level, or UNKNOWN for unrecognized characters.
        """
        return _LETTER_LEVELS.get(letter.upper(), cls.UNKNOWN)

    @classmethod
    def parse(cls, value: str) -> "LogLevel":
        """Parse a level given as a letter or a name.

        Accepts "w", "W", "warn", "Warning" and so on.

        Raises:
            ValueError: If the value names no known level.
        """
        text = value.strip().upper()
        if len(text) == 1 and text in _LETTER_LEVELS:
            return _LETTER_LEVELS[text]
        if text == "WARNING":
            return cls.WARN
        if text in cls.__members__ and text != "UNKNOWN":
            return cls[text]
        raise ValueError(f"unknown log level: {value!r}")


_LEVEL_LETTERS = {
    LogLevel.VERBOSE: "V",
    LogLevel.DEBUG: "D",
    LogLevel.INFO: "I",
    LogLevel.WARN: "W",
    LogLevel.ERROR: "E",
    LogLevel.FATAL: "F",
    LogLevel.SILENT: "S",
}
_LETTER_LEVELS = {letter: level for level, letter in _LEVEL_LETTERS.items()}


@dataclass(frozen=True)
class LogRecord:
    """One logical log entry, possibly spanning several physical lines.

    Attributes:
        timestamp: Timestamp text exactly as it appeared in the header.
        pid: Process id of the emitting process.
        tid: Thread id of the emitting thread.
        level: Severity level.
        tag: Log tag, trimmed of surrounding whitespace (may be empty).
        message: Message text; physical lines are joined with newlines.
    """

    timestamp: str
    pid: int
    tid: int
    level: LogLevel
    tag: str
    message: str

    @property
    def lines(self) -> list[str]:
        """Physical message lines in their original order."""
        return self.message.split("\n")

    def with_continuation(self, lines: list[str]) -> "LogRecord":
        """Return a copy with continuation lines appended to the message."""
        if not lines:
            return self
        return replace(self, message="\n".join([self.message, *lines]))


class ProcessState(Enum):
    """Lifecycle state of a tracked process."""

    STARTING = "starting"
    RUNNING = "running"
    DYING = "dying"
    DEAD = "dead"


@dataclass
class ProcessEntry:
    """Association between a process id and its identifying metadata.

    Attributes:
        pid: Process id.
        package: Application package, or None when not yet observed.
        process_name: Full process name (e.g. "com.example:remote").
        state: Current lifecycle state.
    """

    pid: int
    package: str | None = None
    process_name: str | None = None
    state: ProcessState = ProcessState.RUNNING

    @property
    def alive(self) -> bool:
        return self.state is not ProcessState.DEAD

    @property
    def label(self) -> str:
        """Name shown in the package column."""
        return self.process_name or self.package or f"UNKNOWN({self.pid})"


class ProcessEventKind(Enum):
    """Kind of synthetic lifecycle notification."""

    STARTED = "started"
    DIED = "died"


@dataclass(frozen=True)
class ProcessEvent:
    """Synthetic notification derived from a lifecycle announcement."""

    kind: ProcessEventKind
    pid: int
    package: str | None
    process_name: str
    target: str = ""
    uid: str = ""
    gids: str = ""
    reason: str = ""


class Decision(Enum):
    """Filter outcome for a record or event."""

    PASS = "pass"
    DROP = "drop"

    def __bool__(self) -> bool:
        return self is Decision.PASS


def package_of(process_name: str) -> str:
    """Return the package part of a process name ("pkg:remote" -> "pkg")."""
    return process_name.split(":", 1)[0]


# === Line classification ===


@dataclass(frozen=True)
class NewLogRecord:
    """A header line that opens an ordinary log record."""

    record: LogRecord


@dataclass(frozen=True)
class ProcessStart:
    """A header line announcing that a process was started."""

    record: LogRecord
    pid: int
    process_name: str
    target: str = ""
    uid: str = ""
    gids: str = ""

    @property
    def package(self) -> str:
        return package_of(self.process_name)


@dataclass(frozen=True)
class ProcessDeath:
    """A header line announcing that a process is dying or has died.

    Attributes:
        final: True when the process is gone ("has died"), False when it
            is only being killed or released.
    """

    record: LogRecord
    pid: int
    process_name: str
    reason: str = ""
    final: bool = True

    @property
    def package(self) -> str:
        return package_of(self.process_name)


@dataclass(frozen=True)
class Continuation:
    """A line without header grammar, belonging to the open record."""

    text: str


@dataclass(frozen=True)
class Unparseable:
    """A line that is neither a header nor meaningful continuation text."""

    line: str
    reason: str = field(default="unrecognized")


HeaderLine = NewLogRecord | ProcessStart | ProcessDeath
LineClassification = NewLogRecord | ProcessStart | ProcessDeath | Continuation | Unparseable
