"""Pipeline options."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pidwatch.core.filters import FilterSpec, build_filter_spec
from pidwatch.core.models import LogLevel
from pidwatch.core.registry import DEFAULT_MAX_DEAD
from pidwatch.core.render import RenderConfig


@dataclass(frozen=True)
class PipelineOptions:
    """Everything needed to assemble a pipeline.

    Field names mirror the command-line switches of a typical front end:
    packages and tag lists are taken verbatim, widths are in characters
    and a width of 0 hides the column. ``width`` is the console width
    used for wrapping messages; None disables wrapping.
    """

    packages: Sequence[str] = ()
    tags: Sequence[str] = ()
    ignore_tags: Sequence[str] = ()
    min_level: LogLevel = LogLevel.VERBOSE
    regex: str | None = None
    ignore_system_tags: bool = False
    show_all: bool = False
    show_process_events: bool = True
    keep: bool = True
    show_pid: bool = True
    show_package: bool = True
    always_show_tags: bool = False
    pid_width: int = 5
    package_width: int = 20
    tag_width: int = 20
    width: int | None = None
    color: bool = True
    gc_color: bool = False
    output_path: str | Path | None = None
    color_capacity: int | None = None
    max_dead_processes: int = DEFAULT_MAX_DEAD
    seed_processes: bool = True

    def filter_spec(self) -> FilterSpec:
        return build_filter_spec(
            packages=self.packages,
            tags=self.tags,
            ignore_tags=self.ignore_tags,
            min_level=self.min_level,
            regex=self.regex,
            ignore_system_tags=self.ignore_system_tags,
            show_all=self.show_all,
            show_process_events=self.show_process_events,
        )

    def render_config(self) -> RenderConfig:
        return RenderConfig(
            pid_width=self.pid_width,
            package_width=self.package_width,
            tag_width=self.tag_width,
            width=self.width,
            show_pid=self.show_pid,
            show_package=self.show_package,
            always_show_tags=self.always_show_tags,
            color=self.color,
            gc_color=self.gc_color,
        )
