"""Filter engine deciding which records and lifecycle events are shown.

A FilterSpec is built once at startup and never mutated. Decisions are
pure functions of the record, its resolved process and the spec:
categories combine with AND, matchers within a tag set combine with OR.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from pidwatch.core.errors import FilterError
from pidwatch.core.models import (
    Decision,
    LogLevel,
    LogRecord,
    ProcessEntry,
    ProcessEvent,
    package_of,
)

# Tags emitted by the Android framework and common vendor layers.
# Enabled with "ignore system tags"; each is matched against the whole tag.
SYSTEM_TAGS = (
    r"Tile",
    r"HWUI",
    r"skia",
    r"libc",
    r"libEGL",
    r"Dialog",
    r"System",
    r"OneTrace",
    r"PreCache",
    r"PlayCore",
    r"BpBinder",
    r"VRI\[.*?\]",
    r"AudioTrack",
    r"ImeTracker",
    r"cutils-dev",
    r"JavaBinder",
    r"FrameEvents",
    r"QualityInfo",
    r"ViewExtract",
    r"FirebaseApp",
    r"AdrenoUtils",
    r"ViewRootImpl",
    r"nativeloader",
    r"WindowManager",
    r"OverlayHandler",
    r"ActivityThread",
    r"SurfaceControl",
    r"\[UAH_CLIENT\]",
    r"DisplayManager",
    r"AdrenoGLES-.*?",
    r"VelocityTracker",
    r"OplusBracketLog",
    r"PipelineWatcher",
    r"AppWidgetManager",
    r"BLASTBufferQueue",
    r"InsetsController",
    r"FirebaseSessions",
    r"ProfileInstaller",
    r"ExtensionsLoader",
    r"SurfaceSyncGroup",
    r"DesktopModeFlags",
    r"AppCompatDelegate",
    r"AppWidgetProvider",
    r"AppWidgetHostView",
    r"ApplicationLoaders",
    r"OplusGraphicsEvent",
    r"OplusAppHeapManager",
    r"FirebaseCrashlytics",
    r"ViewRootImplExtImpl",
    r"BufferQueueConsumer",
    r"BufferQueueProducer",
    r"OplusCursorFeedback",
    r"FirebaseInitProvider",
    r"OplusActivityManager",
    r"CompatChangeReporter",
    r"SessionsDependencies",
    r"OplusInputMethodUtil",
    r"BufferPoolAccessor.*?",
    r"OplusViewDebugManager",
    r"WindowOnBackDispatcher",
    r"CompactWindowAppManager",
    r"OplusScrollToTopManager",
    r"ResourcesManagerExtImpl",
    r"ScrollOptimizationHelper",
    r"OplusActivityThreadExtImpl",
    r"DynamicFramerate\s*\[.*?\]",
    r"OplusViewDragTouchViewHelper",
    r"OplusPredictiveBackController",
    r"OplusSystemUINavigationGesture",
    r"OplusInputMethodManagerInternal",
    r"OplusCustomizeRestrictionManager",
    r"oplus\.android\.OplusFrameworkFactoryImpl",
)


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise FilterError(f"invalid pattern {pattern!r}: {exc}", pattern=pattern) from exc


@dataclass(frozen=True)
class TagMatcher:
    """Matches a tag by unanchored regex search.

    A plain word therefore matches as a substring ("Timeout" matches
    "NetworkTimeout"), and metacharacters in user input act as regex.
    """

    pattern: str
    regex: re.Pattern[str] = field(compare=False, repr=False)

    @classmethod
    def compile(cls, pattern: str) -> "TagMatcher":
        return cls(pattern=pattern, regex=_compile(pattern))

    @classmethod
    def exact(cls, pattern: str) -> "TagMatcher":
        """Matcher that must match the whole tag."""
        return cls(pattern=pattern, regex=_compile(rf"^(?:{pattern})$"))

    def matches(self, tag: str) -> bool:
        return self.regex.search(tag) is not None


def _any_match(matchers: tuple[TagMatcher, ...], tag: str) -> bool:
    return any(matcher.matches(tag) for matcher in matchers)


@dataclass(frozen=True)
class FilterSpec:
    """Immutable filter configuration.

    Attributes:
        packages: Packages whose processes (including ":sub" processes)
            are shown. Empty together with processes means no restriction.
        processes: Exact process names to show.
        include_tags: If non-empty, a record must match at least one.
        exclude_tags: A record matching any of these is dropped.
        system_tags: Exclusions enabled by "ignore system tags"; weighted
            exactly like exclude_tags.
        min_level: Records below this level are dropped. At VERBOSE no
            level filtering happens, so UNKNOWN records pass too.
        body_regex: If set, the message must match it.
        show_all: Show records from every package, including unknown ones.
        show_process_events: Emit process start/death notifications.
    """

    packages: frozenset[str] = frozenset()
    processes: frozenset[str] = frozenset()
    include_tags: tuple[TagMatcher, ...] = ()
    exclude_tags: tuple[TagMatcher, ...] = ()
    system_tags: tuple[TagMatcher, ...] = ()
    min_level: LogLevel = LogLevel.VERBOSE
    body_regex: re.Pattern[str] | None = None
    show_all: bool = False
    show_process_events: bool = True

    @property
    def restricts_packages(self) -> bool:
        return bool(self.packages or self.processes)

    @property
    def has_tag_filters(self) -> bool:
        return bool(self.include_tags or self.exclude_tags)

    def matches_package(self, process_name: str | None) -> bool:
        """Check a process name against the package restriction.

        Unknown processes only match when there is no restriction.
        """
        if not self.restricts_packages:
            return True
        if process_name is None:
            return False
        if process_name in self.processes:
            return True
        return package_of(process_name) in self.packages

    def decide(self, record: LogRecord, process: ProcessEntry | None) -> Decision:
        """Decide whether an ordinary record is shown.

        Args:
            record: The flushed record.
            process: The registry entry for the record's pid, if any.

        Returns:
            Decision.PASS if every filter category admits the record.
        """
        if not self.show_all:
            name = None
            if process is not None:
                name = process.process_name or process.package
            if not self.matches_package(name):
                return Decision.DROP
        if self.min_level > LogLevel.VERBOSE and record.level < self.min_level:
            return Decision.DROP
        if self.include_tags and not _any_match(self.include_tags, record.tag):
            return Decision.DROP
        if _any_match(self.exclude_tags, record.tag):
            return Decision.DROP
        if _any_match(self.system_tags, record.tag):
            return Decision.DROP
        if self.body_regex is not None and self.body_regex.search(record.message) is None:
            return Decision.DROP
        return Decision.PASS

    def decide_event(self, event: ProcessEvent) -> Decision:
        """Decide whether a lifecycle notification is shown.

        Notifications are structural: tag, level and body filters do not
        apply, only the package restriction does.
        """
        if not self.show_process_events:
            return Decision.DROP
        if not self.matches_package(event.process_name):
            return Decision.DROP
        return Decision.PASS


def split_tag_arguments(values: Iterable[str]) -> list[str]:
    """Flatten repeated and comma-separated tag arguments.

    >>> split_tag_arguments(["Net, Http", "Db"])
    ['Net', 'Http', 'Db']
    """
    tags = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part:
                tags.append(part)
    return tags


def build_filter_spec(
    packages: Iterable[str] = (),
    tags: Iterable[str] = (),
    ignore_tags: Iterable[str] = (),
    min_level: LogLevel = LogLevel.VERBOSE,
    regex: str | None = None,
    ignore_system_tags: bool = False,
    show_all: bool = False,
    show_process_events: bool = True,
) -> FilterSpec:
    """Build a FilterSpec from user-supplied values.

    Package arguments containing ":" name exact processes; a trailing ":"
    names the package's main process ("com.example:" -> "com.example").

    Raises:
        FilterError: If any tag pattern or the body regex is invalid.
    """
    catchall: set[str] = set()
    named: set[str] = set()
    for package in packages:
        package = package.strip()
        if not package:
            continue
        if ":" in package:
            named.add(package.removesuffix(":"))
        else:
            catchall.add(package)

    body = _compile(regex) if regex else None
    return FilterSpec(
        packages=frozenset(catchall),
        processes=frozenset(named),
        include_tags=tuple(TagMatcher.compile(tag) for tag in split_tag_arguments(tags)),
        exclude_tags=tuple(
            TagMatcher.compile(tag) for tag in split_tag_arguments(ignore_tags)
        ),
        system_tags=(
            tuple(TagMatcher.exact(tag) for tag in SYSTEM_TAGS) if ignore_system_tags else ()
        ),
        min_level=min_level,
        body_regex=body,
        show_all=show_all,
        show_process_events=show_process_events,
    )
