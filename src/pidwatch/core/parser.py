"""Classification of raw logcat lines.

A raw line is either a header that opens a new record (an ordinary log
line or a process lifecycle announcement), continuation text for the
record that is currently open, or noise that is dropped. Classification
is stateless: the same line always yields the same result.
"""

import re

from pidwatch.core.models import (
    Continuation,
    LineClassification,
    LogLevel,
    LogRecord,
    NewLogRecord,
    ProcessDeath,
    ProcessStart,
    Unparseable,
)

# threadtime format: "03-14 10:22:01.123  1234  1234 I MyTag: hello"
# An optional "YYYY-" prefix covers the "-v year" modifier.
HEADER_LINE = re.compile(
    r"^(?P<timestamp>(?:\d{4}-)?\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}\.\d+)"
    r"\s+(?P<pid>\d+)\s+(?P<tid>\d+)"
    r"\s+(?P<level>[A-Za-z])"
    r"\s+(?P<tag>[^:]*?)\s*:(?: (?P<message>.*))?$"
)

# Start proc 5000:com.example.app/u0a123 for activity {com.example.app/.Main}
PID_START = re.compile(r"^Start proc (\d+):([a-zA-Z0-9._:]+)/([a-z0-9]+) for (.*)$")
# Start proc com.example.app for activity com.example.app/.Main: pid=5000 uid=10123 gids={...}
PID_START_UGID = re.compile(
    r"^Start proc ([a-zA-Z0-9._:]+) for ([a-z]+ [^:]+): pid=(\d+) uid=(\d+) gids=(.*)$"
)
# >>>>> com.example.app [ userId:0 | appId:10123 ]
PID_START_DALVIK = re.compile(r"^>>>>> ([a-zA-Z0-9._:]+) \[ userId:0 \| appId:(\d+) \]$")

PID_KILL = re.compile(r"^Killing (\d+):([a-zA-Z0-9._:]+)/[^:]+: (.*)$")
PID_LEAVE = re.compile(r"^No longer want ([a-zA-Z0-9._:]+) \(pid (\d+)\): (.*)$")
PID_DEATH = re.compile(r"^Process ([a-zA-Z0-9._:]+) \(pid (\d+)\) has died[.:]?\s*(.*)$")

BUFFER_DIVIDER = re.compile(r"^-{9} (?:beginning of|switch to) ")
NATIVE_TAGS_LINE = re.compile(r".*Unexpected value from nativeGetEnabledTags.*")

DEATH_TAG = "ActivityManager"


def parse_header(line: str) -> LogRecord | None:
    """Parse a header line into a single-line LogRecord.

    Returns:
        The parsed record, or None if the line lacks header grammar.
    """
    match = HEADER_LINE.match(line)
    if match is None:
        return None
    return LogRecord(
        timestamp=match.group("timestamp"),
        pid=int(match.group("pid")),
        tid=int(match.group("tid")),
        level=LogLevel.from_letter(match.group("level")),
        tag=match.group("tag").strip(),
        message=match.group("message") or "",
    )


def _classify_start(record: LogRecord) -> ProcessStart | None:
    message = record.message
    match = PID_START.match(message)
    if match is not None:
        pid, process, _uid_name, target = match.groups()
        return ProcessStart(record=record, pid=int(pid), process_name=process, target=target)
    match = PID_START_UGID.match(message)
    if match is not None:
        process, target, pid, uid, gids = match.groups()
        return ProcessStart(
            record=record,
            pid=int(pid),
            process_name=process,
            target=target,
            uid=uid,
            gids=gids,
        )
    match = PID_START_DALVIK.match(message)
    if match is not None:
        process, uid = match.groups()
        return ProcessStart(record=record, pid=record.pid, process_name=process, uid=uid)
    return None


def _classify_death(record: LogRecord) -> ProcessDeath | None:
    if record.tag != DEATH_TAG:
        return None
    message = record.message
    match = PID_KILL.match(message)
    if match is not None:
        pid, process, reason = match.groups()
        return ProcessDeath(
            record=record, pid=int(pid), process_name=process, reason=reason, final=False
        )
    match = PID_LEAVE.match(message)
    if match is not None:
        process, pid, reason = match.groups()
        return ProcessDeath(
            record=record, pid=int(pid), process_name=process, reason=reason, final=False
        )
    match = PID_DEATH.match(message)
    if match is not None:
        process, pid, reason = match.groups()
        return ProcessDeath(record=record, pid=int(pid), process_name=process, reason=reason)
    return None


def classify_header(record: LogRecord) -> NewLogRecord | ProcessStart | ProcessDeath:
    """Classify an already-parsed header record by its body."""
    return _classify_start(record) or _classify_death(record) or NewLogRecord(record)


def classify_line(line: str) -> LineClassification:
    """Classify one raw line.

    Args:
        line: A raw line without its trailing line terminator.

    Returns:
        NewLogRecord, ProcessStart or ProcessDeath for header lines,
        Unparseable for buffer dividers and known spurious lines, and
        Continuation for everything else.
    """
    if NATIVE_TAGS_LINE.match(line):
        return Unparseable(line, reason="spurious nativeGetEnabledTags line")
    record = parse_header(line)
    if record is not None:
        return classify_header(record)
    if BUFFER_DIVIDER.match(line):
        return Unparseable(line, reason="buffer divider")
    return Continuation(line)
