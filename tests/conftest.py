"""Shared test fixtures for all test modules."""

from collections.abc import Callable, Iterable

import pytest

from pidwatch.adapters.sinks import InMemorySink
from pidwatch.core.colors import ColorCache
from pidwatch.core.filters import FilterSpec
from pidwatch.core.registry import ProcessRegistry
from pidwatch.core.render import RenderConfig, Renderer
from pidwatch.core.supervisor import StreamSupervisor
from tests.helpers import ListSource


@pytest.fixture
def plain_config() -> RenderConfig:
    """Render configuration with color disabled."""
    return RenderConfig(color=False)


@pytest.fixture
def renderer(plain_config: RenderConfig) -> Renderer:
    """Uncolored renderer with default column widths."""
    return Renderer(plain_config, ColorCache())


@pytest.fixture
def sink() -> InMemorySink:
    """In-memory sink collecting rendered lines."""
    return InMemorySink()


@pytest.fixture
def make_supervisor(sink: InMemorySink) -> Callable[..., StreamSupervisor]:
    """Factory fixture for supervisors writing to the shared in-memory sink."""

    def factory(
        lines: Iterable[str],
        filter_spec: FilterSpec | None = None,
        error: BaseException | None = None,
        config: RenderConfig | None = None,
        keep: bool = True,
    ) -> StreamSupervisor:
        filter_spec = filter_spec or FilterSpec()
        renderer = Renderer(
            config or RenderConfig(color=False),
            ColorCache(),
            tag_filters_active=filter_spec.has_tag_filters,
        )
        return StreamSupervisor(
            source=ListSource(lines, error=error),
            registry=ProcessRegistry(),
            filter_spec=filter_spec,
            renderer=renderer,
            sinks=[sink],
            keep=keep,
        )

    return factory
