"""Python logging handler adapter for pidwatch diagnostics.

This adapter bridges the standard library logging records emitted by the
pipeline itself (skipped lines, source exits, evictions) into a LineSink,
so diagnostics can be shown alongside device output when requested.
Nothing is attached by default; diagnostics stay silent unless enabled.
"""

import logging

from pidwatch.core.ports import LineSink

PIDWATCH_LOGGER = "pidwatch"

_DEFAULT_FORMAT = "pidwatch %(levelname)s [%(name)s] %(message)s"


class SinkLogHandler(logging.Handler):
    """Logging handler that writes formatted records to a LineSink.

    Example:
        ```python
        from pidwatch.adapters.logging import SinkLogHandler
        from pidwatch.adapters.sinks import ConsoleSink

        handler = SinkLogHandler(ConsoleSink(sys.stderr))
        logging.getLogger("pidwatch").addHandler(handler)
        ```
    """

    def __init__(self, sink: LineSink, level: int = logging.NOTSET) -> None:
        """Initialize the handler with an output sink.

        Args:
            sink: Sink receiving one line per diagnostic record.
            level: Minimum level handled.
        """
        super().__init__(level)
        self._sink = sink
        self.setFormatter(logging.Formatter(_DEFAULT_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        """Write a log record to the sink, one line per message line.

        Args:
            record: The log record to emit.
        """
        try:
            text = self.format(record)
            self._sink.write_lines(text.splitlines() or [""])
        except Exception:
            self.handleError(record)


def enable_diagnostics(sink: LineSink, level: int = logging.DEBUG) -> SinkLogHandler:
    """Attach a SinkLogHandler to the pidwatch logger.

    Args:
        sink: Where diagnostic lines are written.
        level: Minimum level of diagnostics to show.

    Returns:
        The installed handler, for later removal with disable_diagnostics().
    """
    handler = SinkLogHandler(sink, level)
    logger = logging.getLogger(PIDWATCH_LOGGER)
    logger.addHandler(handler)
    if logger.level == logging.NOTSET or logger.level > level:
        logger.setLevel(level)
    return handler


def disable_diagnostics(handler: SinkLogHandler) -> None:
    """Detach a handler installed by enable_diagnostics()."""
    logging.getLogger(PIDWATCH_LOGGER).removeHandler(handler)
