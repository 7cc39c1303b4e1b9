"""Exception hierarchy for pipeline failures.

Every error names the pipeline stage that failed so a caller can report
which part of the run broke and why.
"""


class PidwatchError(Exception):
    """Base class for pipeline errors."""

    stage = "pipeline"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class FilterError(PidwatchError):
    """A filter could not be built, e.g. because a regex is invalid."""

    stage = "filter"

    def __init__(self, message: str, pattern: str | None = None) -> None:
        super().__init__(message)
        self.pattern = pattern


class SourceError(PidwatchError):
    """The input source failed or terminated unexpectedly."""

    stage = "source"

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class SinkError(PidwatchError):
    """Rendered output could not be written to a sink."""

    stage = "sink"

    def __init__(self, message: str, sink: str = "") -> None:
        super().__init__(message)
        self.sink = sink


class RegistryInvariantError(PidwatchError):
    """The process registry was used in a way that breaks its invariants."""

    stage = "registry"
