"""Process registry mapping process ids to packages and lifecycle state.

The registry is exclusively owned by one supervisor loop, so it needs no
locking. Memory stays bounded over long sessions: dead entries are kept
in a bounded store for attribution of in-flight lines and evicted
oldest-first, and the live store is capped as well.
"""

import logging
from collections import Counter, OrderedDict
from collections.abc import Callable, Iterable

from pidwatch.core.errors import RegistryInvariantError
from pidwatch.core.models import (
    LineClassification,
    NewLogRecord,
    ProcessDeath,
    ProcessEntry,
    ProcessEvent,
    ProcessEventKind,
    ProcessStart,
    ProcessState,
    package_of,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_LIVE = 4096
DEFAULT_MAX_DEAD = 256


class ProcessRegistry:
    """Tracks pid -> process associations and lifecycle events.

    Args:
        max_live: Maximum number of live entries. Past this bound the
            least recently seen entries are evicted, placeholders with an
            unknown package before any known process.
        max_dead: Maximum number of dead entries retained for
            attribution of late lines.
    """

    def __init__(
        self, max_live: int = DEFAULT_MAX_LIVE, max_dead: int = DEFAULT_MAX_DEAD
    ) -> None:
        if max_live < 1:
            raise ValueError("max_live must be at least 1")
        if max_dead < 0:
            raise ValueError("max_dead must not be negative")
        self.max_live = max_live
        self.max_dead = max_dead
        self._live: OrderedDict[int, ProcessEntry] = OrderedDict()
        self._dead: OrderedDict[int, ProcessEntry] = OrderedDict()
        self._retained: Counter[int] = Counter()

    def __len__(self) -> int:
        return len(self._live) + len(self._dead)

    def __contains__(self, pid: object) -> bool:
        return pid in self._live or pid in self._dead

    @property
    def live_pids(self) -> list[int]:
        return list(self._live)

    @property
    def dead_pids(self) -> list[int]:
        """Dead pids, oldest first."""
        return list(self._dead)

    # === Lookups ===

    def resolve(self, pid: int) -> ProcessEntry | None:
        """Return the entry for a pid, preferring a live one."""
        entry = self._live.get(pid)
        if entry is None:
            entry = self._dead.get(pid)
        return entry

    def package_for(self, pid: int) -> str | None:
        """Return the package owning a pid, or None if unknown."""
        entry = self.resolve(pid)
        return entry.package if entry is not None else None

    # === Pinning of unflushed records ===

    def retain(self, pid: int) -> None:
        """Mark a pid as referenced by a record that is not yet flushed."""
        self._retained[pid] += 1

    def release(self, pid: int) -> None:
        """Drop one reference taken with retain()."""
        if self._retained[pid] <= 1:
            del self._retained[pid]
        else:
            self._retained[pid] -= 1
        self._prune()

    def is_retained(self, pid: int) -> bool:
        return self._retained[pid] > 0

    # === Updates ===

    def seed(self, processes: Iterable[tuple[int, str]]) -> None:
        """Register processes already running before streaming began.

        Args:
            processes: (pid, process name) pairs, e.g. from a ps snapshot.
        """
        for pid, name in processes:
            self._dead.pop(pid, None)
            self._live[pid] = ProcessEntry(
                pid=pid,
                package=package_of(name),
                process_name=name,
                state=ProcessState.RUNNING,
            )
        self._prune()

    def observe(self, classification: LineClassification) -> ProcessEvent | None:
        """Update lifecycle state from a flushed header line.

        Args:
            classification: The classified header line.

        Returns:
            A synthetic lifecycle event for start and first-death
            announcements, otherwise None.
        """
        if isinstance(classification, ProcessStart):
            event = self._on_start(classification)
        elif isinstance(classification, ProcessDeath):
            event = self._on_death(classification)
        elif isinstance(classification, NewLogRecord):
            event = None
        else:
            return None
        self._touch(classification.record.pid)
        self._prune()
        return event

    def evict(self, pid: int) -> None:
        """Remove a pid from the registry.

        Raises:
            RegistryInvariantError: If an unflushed record still
                references the pid.
        """
        if self.is_retained(pid):
            raise RegistryInvariantError(f"cannot evict pid {pid}: still referenced")
        self._live.pop(pid, None)
        self._dead.pop(pid, None)

    def _on_start(self, start: ProcessStart) -> ProcessEvent:
        # a start for a recycled pid begins a fresh lifetime
        self._dead.pop(start.pid, None)
        self._live.pop(start.pid, None)
        self._live[start.pid] = ProcessEntry(
            pid=start.pid,
            package=start.package,
            process_name=start.process_name,
            state=ProcessState.STARTING,
        )
        logger.debug("process %s started as pid %d", start.process_name, start.pid)
        return ProcessEvent(
            kind=ProcessEventKind.STARTED,
            pid=start.pid,
            package=start.package,
            process_name=start.process_name,
            target=start.target,
            uid=start.uid,
            gids=start.gids,
        )

    def _on_death(self, death: ProcessDeath) -> ProcessEvent | None:
        entry = self._live.get(death.pid)
        first_death = entry is None or entry.state is not ProcessState.DYING
        if entry is None:
            if death.pid in self._dead:
                # already dead, nothing left to announce
                return None
            entry = ProcessEntry(pid=death.pid)
            self._live[death.pid] = entry
        if entry.package is None:
            entry.package = death.package
            entry.process_name = death.process_name
        if death.final:
            entry.state = ProcessState.DEAD
            del self._live[death.pid]
            self._dead.pop(death.pid, None)
            self._dead[death.pid] = entry
        else:
            entry.state = ProcessState.DYING
        logger.debug("process %s (pid %d) is %s", entry.label, death.pid, entry.state.value)
        if not first_death:
            return None
        return ProcessEvent(
            kind=ProcessEventKind.DIED,
            pid=death.pid,
            package=entry.package,
            process_name=entry.process_name or death.process_name,
            reason=death.reason,
        )

    def _touch(self, pid: int) -> None:
        """Note a log line from pid, creating a placeholder if needed."""
        if pid in self._dead:
            return
        entry = self._live.get(pid)
        if entry is None:
            self._live[pid] = ProcessEntry(pid=pid, state=ProcessState.RUNNING)
            return
        if entry.state is ProcessState.STARTING:
            entry.state = ProcessState.RUNNING
        self._live.move_to_end(pid)

    def _prune(self) -> None:
        self._prune_store(self._dead, self.max_dead, lambda entry: True)
        self._prune_store(self._live, self.max_live, lambda entry: entry.package is None)
        self._prune_store(self._live, self.max_live, lambda entry: True)

    def _prune_store(
        self,
        store: "OrderedDict[int, ProcessEntry]",
        bound: int,
        evictable: Callable[[ProcessEntry], bool],
    ) -> None:
        excess = len(store) - bound
        if excess <= 0:
            return
        # oldest first; pinned pids and non-evictable entries are skipped
        victims = [
            pid
            for pid, entry in store.items()
            if not self.is_retained(pid) and evictable(entry)
        ][:excess]
        for pid in victims:
            del store[pid]
        if victims:
            logger.debug("evicted %d process entries", len(victims))
