"""Source and sink adapters implementing core ports."""

from pidwatch.adapters.pipeline import create_supervisor
from pidwatch.adapters.sinks import ConsoleSink, FileSink, InMemorySink
from pidwatch.adapters.sources import AdbLogcatSource, FileSource, StreamSource

__all__ = [
    "AdbLogcatSource",
    "ConsoleSink",
    "FileSink",
    "FileSource",
    "InMemorySink",
    "StreamSource",
    "create_supervisor",
]
