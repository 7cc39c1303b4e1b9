"""Assembly of a ready-to-run supervisor from pipeline options."""

import logging

from pidwatch.adapters.sinks import ConsoleSink, FileSink
from pidwatch.core.colors import ColorCache
from pidwatch.core.config import PipelineOptions
from pidwatch.core.ports import LineSink, LineSource
from pidwatch.core.registry import ProcessRegistry
from pidwatch.core.render import Renderer
from pidwatch.core.supervisor import StreamSupervisor

logger = logging.getLogger(__name__)


def create_supervisor(
    options: PipelineOptions,
    source: LineSource,
    console: LineSink | None = None,
) -> StreamSupervisor:
    """Wire a StreamSupervisor from options.

    Args:
        options: Pipeline options.
        source: Input source. If it offers list_processes() and
            seed_processes is set, running processes are registered
            before streaming.
        console: Primary sink; a ConsoleSink on stdout when omitted.

    Returns:
        A supervisor ready to run().

    Raises:
        FilterError: If a tag pattern or the body regex is invalid.
        ValueError: If a width or capacity is out of range.
        SinkError: If the output file cannot be created.
        SourceError: If listing running processes fails.
    """
    filter_spec = options.filter_spec()
    render_config = options.render_config()
    colors = ColorCache(capacity=options.color_capacity)
    registry = ProcessRegistry(max_dead=options.max_dead_processes)

    list_processes = getattr(source, "list_processes", None)
    if options.seed_processes and list_processes is not None:
        processes = list_processes()
        registry.seed(processes)
        logger.debug("seeded registry with %d running processes", len(processes))

    sinks: list[LineSink] = [console if console is not None else ConsoleSink()]
    if options.output_path is not None:
        sinks.append(FileSink(options.output_path))

    renderer = Renderer(
        render_config, colors, tag_filters_active=filter_spec.has_tag_filters
    )
    return StreamSupervisor(
        source=source,
        registry=registry,
        filter_spec=filter_spec,
        renderer=renderer,
        sinks=sinks,
        keep=options.keep,
    )
