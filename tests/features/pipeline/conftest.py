"""BDD step definitions for pipeline features."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from pidwatch.adapters.pipeline import create_supervisor
from pidwatch.adapters.sinks import InMemorySink
from pidwatch.core.colors import ColorCache
from pidwatch.core.config import PipelineOptions
from pidwatch.core.encoding.ansi import Color
from tests.helpers import ListSource, logcat_line, start_line


@dataclass
class PipelineScenarioContext:
    """State shared between the steps of one scenario."""

    options: PipelineOptions = field(default_factory=PipelineOptions)
    lines: list[str] = field(default_factory=list)
    sink: InMemorySink = field(default_factory=lambda: InMemorySink(strip_color=True))
    ran: bool = False
    cache: ColorCache | None = None
    first_colors: dict[str, Color] = field(default_factory=dict)

    def output(self) -> list[str]:
        """Run the pipeline once over the streamed lines and return its output."""
        if not self.ran:
            create_supervisor(self.options, ListSource(self.lines), console=self.sink).run()
            self.ran = True
        return self.sink.lines


@pytest.fixture
def ctx() -> PipelineScenarioContext:
    """Fresh scenario context for each test."""
    return PipelineScenarioContext()


# === Given ===


@given("no filters are configured")
def step_no_filters(ctx: PipelineScenarioContext) -> None:
    ctx.options = PipelineOptions()


@given(parsers.parse('a package filter for "{package}"'))
def step_package_filter(ctx: PipelineScenarioContext, package: str) -> None:
    ctx.options = PipelineOptions(packages=[package])


@given(parsers.parse('a tag filter "{tag}"'))
def step_tag_filter(ctx: PipelineScenarioContext, tag: str) -> None:
    ctx.options = PipelineOptions(tags=[tag])


@given(parsers.parse("a color cache with capacity {capacity:d}"))
def step_color_cache(ctx: PipelineScenarioContext, capacity: int) -> None:
    ctx.cache = ColorCache(capacity=capacity)


# === When ===


@when(parsers.parse('the line "{line}" is streamed'))
def step_stream_line(ctx: PipelineScenarioContext, line: str) -> None:
    ctx.lines.append(line)


@when(parsers.parse('the stack frame "{frame}" follows'))
def step_stack_frame(ctx: PipelineScenarioContext, frame: str) -> None:
    ctx.lines.append("\t" + frame)


@when(parsers.parse('process "{process}" starts as pid {pid:d}'))
def step_process_starts(ctx: PipelineScenarioContext, process: str, pid: int) -> None:
    ctx.lines.append(start_line(pid, process))


@when(parsers.parse('pid {pid:d} logs "{message}" with tag "{tag}"'))
def step_pid_logs(ctx: PipelineScenarioContext, pid: int, message: str, tag: str) -> None:
    ctx.lines.append(logcat_line(pid, tag, message))


@when(parsers.parse('the keys "{keys}" are colored in order'))
def step_color_keys(ctx: PipelineScenarioContext, keys: str) -> None:
    assert ctx.cache is not None
    for key in (part.strip() for part in keys.split(",")):
        color = ctx.cache.color_for(key)
        ctx.first_colors.setdefault(key, color)


# === Then ===


@then(parsers.parse("the number of rendered lines is {count:d}"))
def step_line_count(ctx: PipelineScenarioContext, count: int) -> None:
    assert len(ctx.output()) == count


@then(parsers.parse('the rendered line contains "{text}"'))
def step_line_contains(ctx: PipelineScenarioContext, text: str) -> None:
    (line,) = ctx.output()
    assert text in line


@then(parsers.parse('the rendered line ends with "{text}"'))
def step_line_ends_with(ctx: PipelineScenarioContext, text: str) -> None:
    (line,) = ctx.output()
    assert line.endswith(text)


@then(parsers.parse('a start notification for "{process}" is rendered'))
def step_start_notification(ctx: PipelineScenarioContext, process: str) -> None:
    assert any(f"Process {process} (PID:" in line for line in ctx.output())


@then(parsers.parse('a line tagged "{tag}" is rendered'))
def step_tagged_line(ctx: PipelineScenarioContext, tag: str) -> None:
    assert any(f" {tag} " in line for line in ctx.output())


@then(parsers.parse('no rendered line contains "{text}"'))
def step_no_line_contains(ctx: PipelineScenarioContext, text: str) -> None:
    assert not any(text in line for line in ctx.output())


@then("the continuation line is aligned under the message")
def step_continuation_aligned(ctx: PipelineScenarioContext) -> None:
    first, second = ctx.output()
    column = first.index("FATAL EXCEPTION")
    assert second[:column].strip() == ""
    assert second[column:].startswith("\tat com.example.Foo.bar")


@then(parsers.parse('"{key}" is no longer cached'))
def step_key_evicted(ctx: PipelineScenarioContext, key: str) -> None:
    assert ctx.cache is not None
    assert key not in ctx.cache


@then(parsers.parse('"{key}" keeps its original color'))
def step_key_keeps_color(ctx: PipelineScenarioContext, key: str) -> None:
    assert ctx.cache is not None
    assert ctx.cache.peek(key) == ctx.first_colors[key]


@then(parsers.parse('"{key}" reuses the color of "{other}"'))
def step_key_reuses_color(ctx: PipelineScenarioContext, key: str, other: str) -> None:
    assert ctx.cache is not None
    assert ctx.cache.peek(key) == ctx.first_colors[other]
