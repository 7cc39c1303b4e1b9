"""Real-time triage of Android device logs, attributed to app processes."""

from pidwatch.adapters.pipeline import create_supervisor
from pidwatch.core.config import PipelineOptions
from pidwatch.core.errors import (
    FilterError,
    PidwatchError,
    RegistryInvariantError,
    SinkError,
    SourceError,
)
from pidwatch.core.models import LogLevel, LogRecord
from pidwatch.core.supervisor import RunResult, RunStatus, StreamSupervisor

__all__ = [
    "FilterError",
    "LogLevel",
    "LogRecord",
    "PidwatchError",
    "PipelineOptions",
    "RegistryInvariantError",
    "RunResult",
    "RunStatus",
    "SinkError",
    "SourceError",
    "StreamSupervisor",
    "create_supervisor",
]
