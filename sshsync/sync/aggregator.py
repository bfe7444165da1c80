# sshsync Change Aggregator
# Parse watcher output and coalesce changes until the next flush

import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from sshsync.sync.exclude import ExclusionMatcher
from sshsync.utils.paths import ensure_trailing_separator, get_relative_path, resolve_event_path

# inotify flag marking an event about a directory itself
DIRECTORY_MARKER = "ISDIR"


@dataclass(frozen=True)
class ChangeEvent:
    """One line of watcher output."""

    kinds: tuple[str, ...]
    path: str

    @property
    def is_directory(self) -> bool:
        """Check if the event is about a directory rather than a file."""
        return DIRECTORY_MARKER in self.kinds


def parse_event_line(line: str) -> Optional[ChangeEvent]:
    """
    Parse a "<KIND,KIND> <path>" watcher line.

    Args:
        line: Raw line, with or without trailing newline.

    Returns:
        ChangeEvent, or None if the line does not hold kinds and a path.
    """
    line = line.rstrip("\n")
    kinds_field, sep, path = line.partition(" ")
    if not sep or not path:
        return None

    kinds = tuple(kind for kind in kinds_field.split(",") if kind)
    if not kinds:
        return None

    return ChangeEvent(kinds=kinds, path=path)


class PendingChangeSet:
    """
    Paths changed since the last flush.

    Keyed by the normalized relative path, so repeated changes to one path
    collapse into a single entry.
    """

    def __init__(self) -> None:
        self._paths: dict[str, str] = {}

    def add(self, path: str) -> None:
        self._paths[path] = path

    def drain(self) -> list[str]:
        """Return all pending paths and clear the set."""
        paths = list(self._paths.values())
        self._paths = {}
        return paths

    def __len__(self) -> int:
        return len(self._paths)

    def __bool__(self) -> bool:
        return bool(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._paths.values()))


class ChangeAggregator:
    """
    Turn watcher events into a deduplicated set of relative paths.

    Directory-only events and excluded paths are dropped; everything else
    is stored until flush() hands it to the sync engine. The watch loop
    flushes when the watcher goes quiet for one poll interval, or when
    max_delay seconds have passed since the first pending change.
    """

    def __init__(
        self,
        local_root: Path,
        matcher: Optional[ExclusionMatcher] = None,
        *,
        max_delay: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize aggregator.

        Args:
            local_root: Watched root directory.
            matcher: Exclusion rules (none if not provided).
            max_delay: Longest time a change may stay pending. None = no limit.
            clock: Monotonic time source.
        """
        self.local_root = local_root
        self.matcher = matcher or ExclusionMatcher()
        self.max_delay = max_delay
        self._clock = clock
        self.pending = PendingChangeSet()
        self._window_started: Optional[float] = None

    def accept(self, event: ChangeEvent) -> Optional[str]:
        """
        Record one event.

        Args:
            event: Parsed watcher event.

        Returns:
            The stored relative path, or None if the event was discarded.
        """
        if event.is_directory:
            return None

        path = event.path
        is_dir = os.path.isdir(resolve_event_path(self.local_root, path))
        if is_dir:
            path = ensure_trailing_separator(path)

        relative = get_relative_path(self.local_root, path)
        if not relative or relative == "/":
            return None

        if self.matcher.should_exclude(relative, is_dir=is_dir):
            return None

        if not self.pending:
            self._window_started = self._clock()
        self.pending.add(relative)
        return relative

    def accept_line(self, line: str) -> Optional[str]:
        """Parse and record one raw watcher line. Malformed lines are ignored."""
        event = parse_event_line(line)
        if event is None:
            return None
        return self.accept(event)

    def window_expired(self) -> bool:
        """True if changes have been pending for at least max_delay seconds."""
        if self.max_delay is None or self._window_started is None or not self.pending:
            return False
        return self._clock() - self._window_started >= self.max_delay

    def flush(self) -> list[str]:
        """Hand out every pending path and start a new window."""
        self._window_started = None
        return self.pending.drain()
