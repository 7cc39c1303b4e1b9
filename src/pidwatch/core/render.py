"""Column-aligned rendering of records and lifecycle notifications.

Layout of an ordinary record (columns with width 0 are omitted)::

    <pid> <package> <tag> <level> <message>
                                  <continuation line>

With a console width set, long message lines are wrapped onto further
lines indented to the message column, and tabs are expanded first.

Color never influences layout: every cell is padded, truncated and
wrapped on its plain text first and wrapped in escape codes afterwards,
so output with color disabled equals colored output with the escapes
stripped.
"""

import re
from dataclasses import dataclass

from pidwatch.core.colors import ColorCache
from pidwatch.core.encoding.ansi import Color, colorize
from pidwatch.core.models import (
    Decision,
    LogLevel,
    LogRecord,
    ProcessEntry,
    ProcessEvent,
    ProcessEventKind,
)

ELLIPSIS = "…"

# (foreground, background) of the severity indicator
LEVEL_COLORS: dict[LogLevel, tuple[Color, Color]] = {
    LogLevel.UNKNOWN: (Color.WHITE, Color.BRIGHT_BLACK),
    LogLevel.VERBOSE: (Color.BLACK, Color.BRIGHT_CYAN),
    LogLevel.DEBUG: (Color.BLACK, Color.BRIGHT_BLUE),
    LogLevel.INFO: (Color.BLACK, Color.BRIGHT_GREEN),
    LogLevel.WARN: (Color.BLACK, Color.BRIGHT_YELLOW),
    LogLevel.ERROR: (Color.BLACK, Color.RED),
    LogLevel.FATAL: (Color.BLACK, Color.BRIGHT_RED),
    LogLevel.SILENT: (Color.WHITE, Color.BRIGHT_BLACK),
}

EVENT_COLORS = {
    ProcessEventKind.STARTED: Color.GREEN,
    ProcessEventKind.DIED: Color.RED,
}

UNKNOWN_PROCESS_COLOR = Color.BRIGHT_BLACK

LEVEL_CELL_WIDTH = 3
TAB = "    "

BACKTRACE_LINE = re.compile(r"^#(.*?)pc\s(.*?)$")
# StrictMode policy violation; ~duration=319 ms: android.os.StrictMode$StrictModeDiskWriteViolation
STRICT_MODE_LINE = re.compile(r"^(StrictMode policy violation)(; ~duration=)(\d+ ms)")
# GC_CONCURRENT freed 3617K, 29% free 20525K/28648K, paused 4ms+5ms, total 85ms
GC_LINE = re.compile(
    r"^(GC_(?:CONCURRENT|FOR_M?ALLOC|EXTERNAL_ALLOC|EXPLICIT) )"
    r"(freed <?\d+.)(, \d+% free \d+./\d+., )(paused \d+ms(?:\+\d+ms)?)"
)


def truncate(text: str, width: int) -> str:
    """Shorten text to width characters, marking the cut with an ellipsis."""
    if len(text) <= width:
        return text
    if width <= 0:
        return ""
    return text[: width - len(ELLIPSIS)] + ELLIPSIS


@dataclass(frozen=True)
class RenderConfig:
    """Layout and color options for the renderer.

    ``width`` is the console width in characters. When set, message
    lines longer than the space right of the header are wrapped; None
    disables wrapping.
    """

    pid_width: int = 5
    package_width: int = 20
    tag_width: int = 20
    width: int | None = None
    show_pid: bool = True
    show_package: bool = True
    always_show_tags: bool = False
    color: bool = True
    gc_color: bool = False

    def __post_init__(self) -> None:
        for name in ("pid_width", "package_width", "tag_width"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.width is not None and self.width < 1:
            raise ValueError("width must be at least 1")

    @property
    def pid_column(self) -> int:
        return self.pid_width if self.show_pid else 0

    @property
    def package_column(self) -> int:
        return self.package_width if self.show_package else 0

    @property
    def header_width(self) -> int:
        """Visible width of everything left of the message column."""
        width = LEVEL_CELL_WIDTH + 1
        for column in (self.pid_column, self.package_column, self.tag_width):
            if column > 0:
                width += column + 1
        return width

    @property
    def wrap_width(self) -> int:
        """Characters of message per display line, or 0 when not wrapping."""
        if self.width is None:
            return 0
        return max(self.width - self.header_width, 0)


class Renderer:
    """Formats accepted records into display lines.

    Args:
        config: Layout and color options.
        colors: Color cache shared for tag and package keys.
        tag_filters_active: Whether the user asked for tag filtering; the
            tag is then printed on every line instead of once per run.
    """

    def __init__(
        self,
        config: RenderConfig,
        colors: ColorCache,
        tag_filters_active: bool = False,
    ) -> None:
        self.config = config
        self.colors = colors
        self.tag_filters_active = tag_filters_active

    def _paint(self, text: str, fg: Color | None = None, bg: Color | None = None) -> str:
        return colorize(text, fg=fg, bg=bg, enabled=self.config.color)

    def _pid_cell(self, pid: int) -> str:
        width = self.config.pid_column
        return truncate(str(pid), width).rjust(width)

    def _package_cell(self, record: LogRecord, process: ProcessEntry | None) -> str:
        width = self.config.package_column
        if process is None:
            process = ProcessEntry(pid=record.pid)
        cell = truncate(process.label, width).ljust(width)
        if process.package is None:
            # unattributed pids share one color outside the cache
            return self._paint(cell, fg=UNKNOWN_PROCESS_COLOR)
        return self._paint(cell, fg=self.colors.color_for(process.package))

    def _tag_cell(self, tag: str, previous_tag: str | None) -> str:
        config = self.config
        width = config.tag_width
        show = config.always_show_tags or self.tag_filters_active or tag != previous_tag
        if not show or not tag:
            return " " * width
        text = truncate(tag, width)
        if config.pid_column or config.package_column:
            cell = text.rjust(width)
        else:
            cell = text.ljust(width)
        return self._paint(cell, fg=self.colors.color_for(tag))

    def _level_cell(self, level: LogLevel) -> str:
        fg, bg = LEVEL_COLORS[level]
        return self._paint(f" {level.letter} ", fg=fg, bg=bg)

    def _plain_message(self, tag: str, line: str) -> str:
        if tag == "DEBUG" and BACKTRACE_LINE.match(line.lstrip()):
            line = line.lstrip()
        if self.config.wrap_width:
            line = line.replace("\t", TAB)
        return line

    def _highlights(self, line: str) -> list[tuple[int, int, Color]]:
        """Return (start, end, color) spans of the plain line to paint."""
        spans = []
        match = STRICT_MODE_LINE.match(line)
        if match is not None:
            spans.append((*match.span(2), Color.RED))
            spans.append((*match.span(3), Color.YELLOW))
        if self.config.gc_color:
            match = GC_LINE.match(line)
            if match is not None:
                spans.append((*match.span(2), Color.GREEN))
                spans.append((*match.span(4), Color.YELLOW))
        return sorted(spans)

    def _paint_chunk(
        self, chunk: str, offset: int, spans: list[tuple[int, int, Color]]
    ) -> str:
        # offset is the position of chunk within its plain line
        end = offset + len(chunk)
        pieces = []
        position = offset
        for start, stop, color in spans:
            start, stop = max(start, position), min(stop, end)
            if start >= stop:
                continue
            pieces.append(chunk[position - offset : start - offset])
            pieces.append(self._paint(chunk[start - offset : stop - offset], fg=color))
            position = stop
        pieces.append(chunk[position - offset :])
        return "".join(pieces)

    def _wrap(self, line: str) -> list[tuple[int, str]]:
        """Split a plain line into (offset, chunk) pairs of at most wrap_width."""
        area = self.config.wrap_width
        if not area or len(line) <= area:
            return [(0, line)]
        return [(start, line[start : start + area]) for start in range(0, len(line), area)]

    def render(
        self,
        record: LogRecord,
        process: ProcessEntry | None = None,
        decision: Decision = Decision.PASS,
        previous_tag: str | None = None,
    ) -> list[str]:
        """Render an accepted record, one or more display lines per physical line.

        Args:
            record: The record to render.
            process: Registry entry owning the record's pid, if known.
            decision: Filter decision; dropped records render nothing.
            previous_tag: Tag of the previously rendered record. A repeated
                tag leaves the tag column blank unless tags are always shown.

        Returns:
            Display lines without trailing newlines.
        """
        if decision is Decision.DROP:
            return []
        config = self.config
        cells = []
        if config.pid_column:
            cells.append(self._pid_cell(record.pid))
        if config.package_column:
            cells.append(self._package_cell(record, process))
        if config.tag_width:
            cells.append(self._tag_cell(record.tag, previous_tag))
        cells.append(self._level_cell(record.level))
        header = " ".join(cells) + " "

        indent = " " * config.header_width
        lines: list[str] = []
        for text in record.lines:
            text = self._plain_message(record.tag, text)
            spans = self._highlights(text)
            for offset, chunk in self._wrap(text):
                prefix = indent if lines else header
                lines.append(prefix + self._paint_chunk(chunk, offset, spans))
        return lines

    def render_event(self, event: ProcessEvent) -> list[str]:
        """Render a lifecycle notification as a single banner line."""
        name = self._paint(event.process_name, fg=Color.YELLOW)
        pid = self._paint(str(event.pid), fg=Color.YELLOW)
        if event.kind is ProcessEventKind.STARTED:
            text = f" Process {name} (PID: {pid}) "
            if event.target:
                text += f"created for {self._paint(event.target, fg=Color.YELLOW)}"
            else:
                text += "started"
            if event.uid:
                text += f"   UID: {event.uid}"
            if event.gids:
                text += f"   GIDs: {event.gids}"
        else:
            text = f" Process {name} (PID: {pid}) ended"
            if event.reason:
                text += f": {event.reason}"
        bar = " " * max(self.config.header_width - 1, 0)
        return [self._paint(bar, bg=EVENT_COLORS[event.kind]) + text]
