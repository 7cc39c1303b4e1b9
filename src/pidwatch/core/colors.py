"""Bounded color assignment for recurring display keys.

Tags and package names get a color from a small rotating palette so a
recurring key stays visually recognizable. The cache holds at most
``capacity`` keys and evicts the least recently used one on overflow;
an evicted key gets a (possibly different) color the next time it is
seen. A few well-known system tags always use a fixed color.
"""

from collections import OrderedDict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from pidwatch.core.encoding.ansi import Color

DEFAULT_PALETTE = (
    Color.BRIGHT_RED,
    Color.BRIGHT_BLUE,
    Color.BRIGHT_CYAN,
    Color.BRIGHT_GREEN,
    Color.BRIGHT_YELLOW,
    Color.BRIGHT_MAGENTA,
)

KNOWN_KEY_COLORS: Mapping[str, Color] = {
    "jdwp": Color.WHITE,
    "DEBUG": Color.YELLOW,
    "Process": Color.WHITE,
    "dalvikvm": Color.WHITE,
    "StrictMode": Color.WHITE,
    "AndroidRuntime": Color.CYAN,
    "ActivityThread": Color.WHITE,
    "ActivityManager": Color.WHITE,
}


@dataclass(frozen=True)
class ColorCacheEntry:
    """Snapshot of one cached assignment.

    Attributes:
        key: Display key (tag or package text).
        color: Assigned palette color.
        recency: 0 for the least recently used entry, increasing.
    """

    key: str
    color: Color
    recency: int


class ColorCache:
    """LRU cache assigning palette colors to display keys.

    Args:
        capacity: Maximum number of cached keys. Defaults to the palette size.
        palette: Colors handed out round-robin to new keys.
        fixed: Keys with hard-coded colors that bypass the cache.
    """

    def __init__(
        self,
        capacity: int | None = None,
        palette: Sequence[Color] = DEFAULT_PALETTE,
        fixed: Mapping[str, Color] = KNOWN_KEY_COLORS,
    ) -> None:
        if not palette:
            raise ValueError("palette must not be empty")
        if capacity is None:
            capacity = len(palette)
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._palette = tuple(palette)
        self._fixed = dict(fixed)
        self._entries: OrderedDict[str, Color] = OrderedDict()
        self._next_slot = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def color_for(self, key: str) -> Color:
        """Return the color for a key, assigning one on first use."""
        fixed = self._fixed.get(key)
        if fixed is not None:
            return fixed

        color = self._entries.get(key)
        if color is not None:
            self._entries.move_to_end(key)
            return color

        if len(self._entries) < self.capacity:
            color = self._palette[self._next_slot % len(self._palette)]
            self._next_slot += 1
        else:
            _evicted, color = self._entries.popitem(last=False)
        self._entries[key] = color
        return color

    def peek(self, key: str) -> Color | None:
        """Return the cached color for a key without touching recency."""
        if key in self._fixed:
            return self._fixed[key]
        return self._entries.get(key)

    def entries(self) -> list[ColorCacheEntry]:
        """Cached assignments, least recently used first."""
        return [
            ColorCacheEntry(key=key, color=color, recency=index)
            for index, (key, color) in enumerate(self._entries.items())
        ]
