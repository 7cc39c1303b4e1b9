"""Stream supervisor driving the read -> parse -> track -> filter -> render loop.

The supervisor exclusively owns all pipeline state (the open record, the
process registry and the color cache behind the renderer), so the loop is
strictly sequential and needs no locking. Slow sinks throttle the reader
because every line is fully handled before the next one is read.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from pidwatch.core.errors import SinkError, SourceError
from pidwatch.core.filters import FilterSpec
from pidwatch.core.models import (
    Continuation,
    HeaderLine,
    Unparseable,
)
from pidwatch.core.parser import classify_line
from pidwatch.core.ports import LineSink, LineSource
from pidwatch.core.registry import ProcessRegistry
from pidwatch.core.render import Renderer

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    """How a supervisor run ended."""

    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    SOURCE_FAILED = "source_failed"


@dataclass
class PipelineStats:
    """Counters collected over one run."""

    lines: int = 0
    records: int = 0
    rendered: int = 0
    dropped: int = 0
    events: int = 0
    continuations: int = 0
    orphaned: int = 0
    unparseable: int = 0


@dataclass(frozen=True)
class RunResult:
    """Outcome of StreamSupervisor.run().

    Attributes:
        status: How the run ended.
        stats: Counters for the run.
        error: The source error for SOURCE_FAILED runs.
    """

    status: RunStatus
    stats: PipelineStats = field(default_factory=PipelineStats)
    error: SourceError | None = None

    @property
    def ok(self) -> bool:
        return self.status is not RunStatus.SOURCE_FAILED

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


class StreamSupervisor:
    """Owns the input source and drives records through the pipeline.

    Args:
        source: Where raw lines come from.
        registry: Process registry used for attribution.
        filter_spec: Immutable filter configuration.
        renderer: Formats accepted records and events.
        sinks: Destinations for rendered lines.
        keep: When False, ask the source to clear buffered history
            before reading.
    """

    def __init__(
        self,
        source: LineSource,
        registry: ProcessRegistry,
        filter_spec: FilterSpec,
        renderer: Renderer,
        sinks: Sequence[LineSink],
        keep: bool = True,
    ) -> None:
        self.source = source
        self.registry = registry
        self.filter_spec = filter_spec
        self.renderer = renderer
        self.sinks = list(sinks)
        self.keep = keep
        self.stats = PipelineStats()
        self._pending: HeaderLine | None = None
        self._continuation: list[str] = []
        self._previous_tag: str | None = None

    def run(self) -> RunResult:
        """Stream until the source ends, fails or is interrupted.

        Any open record is flushed before returning or raising, and the
        source and sinks are closed in every case.

        Returns:
            RunResult with status COMPLETED, INTERRUPTED or SOURCE_FAILED.

        Raises:
            SinkError: If rendered output could not be written.
        """
        try:
            status, error = self._pump()
        finally:
            try:
                self.flush()
            finally:
                self._close()
        logger.info(
            "stream %s: %d lines, %d records, %d rendered, %d unparseable",
            status.value,
            self.stats.lines,
            self.stats.records,
            self.stats.rendered,
            self.stats.unparseable + self.stats.orphaned,
        )
        return RunResult(status=status, stats=self.stats, error=error)

    def _pump(self) -> tuple[RunStatus, SourceError | None]:
        try:
            if not self.keep:
                self.source.clear()
            for line in self.source.lines():
                self.feed(line)
        except SourceError as exc:
            logger.error("input source failed: %s", exc)
            return RunStatus.SOURCE_FAILED, exc
        except KeyboardInterrupt:
            logger.info("interrupted, flushing pending record")
            return RunStatus.INTERRUPTED, None
        return RunStatus.COMPLETED, None

    def feed(self, line: str) -> None:
        """Process one raw line."""
        self.stats.lines += 1
        classification = classify_line(line)
        if isinstance(classification, Continuation):
            if self._pending is None:
                self.stats.orphaned += 1
                logger.debug("continuation without an open record: %r", line)
            else:
                self.stats.continuations += 1
                self._continuation.append(classification.text)
        elif isinstance(classification, Unparseable):
            self.stats.unparseable += 1
            logger.debug("skipping line (%s): %r", classification.reason, line)
        else:
            self.flush()
            self._pending = classification
            self._continuation = []
            self.registry.retain(classification.record.pid)

    def flush(self) -> None:
        """Push the open record, if any, through the pipeline."""
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        lines, self._continuation = self._continuation, []
        record = pending.record.with_continuation(lines)
        try:
            self._dispatch(replace(pending, record=record))
        finally:
            self.registry.release(record.pid)

    def _dispatch(self, header: HeaderLine) -> None:
        record = header.record
        self.stats.records += 1
        event = self.registry.observe(header)
        if event is not None:
            self.stats.events += 1
            if self.filter_spec.decide_event(event):
                self._emit(self.renderer.render_event(event))
                self._previous_tag = None
                return

        process = self.registry.resolve(record.pid)
        decision = self.filter_spec.decide(record, process)
        if not decision:
            self.stats.dropped += 1
            return
        lines = self.renderer.render(
            record, process, decision, previous_tag=self._previous_tag
        )
        self._previous_tag = record.tag
        self.stats.rendered += 1
        self._emit(lines)

    def _emit(self, lines: Iterable[str]) -> None:
        lines = list(lines)
        for sink in self.sinks:
            sink.write_lines(lines)

    def _close(self) -> None:
        failure: SinkError | None = None
        try:
            self.source.close()
        except SourceError as exc:
            logger.warning("error closing source: %s", exc)
        for sink in self.sinks:
            try:
                sink.close()
            except SinkError as exc:
                failure = failure or exc
        if failure is not None:
            raise failure
