# sshsync Exclusion Matcher
# Glob-based filtering of changed paths

from fnmatch import fnmatchcase
from typing import Iterable

from sshsync.utils.paths import ensure_trailing_separator


class ExclusionMatcher:
    """
    Match relative paths against a fixed set of glob patterns.

    Patterns use fnmatch semantics, so "*" also matches "/". Directory
    paths always carry a trailing "/" before matching, which lets
    "build/*" and "*/node_modules/" style patterns behave the same whether
    or not the event source reported the separator.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        self._patterns: tuple[str, ...] = tuple(p for p in patterns if p)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def should_exclude(self, relative_path: str, *, is_dir: bool = False) -> bool:
        """
        Check a path against every pattern.

        Args:
            relative_path: Path relative to the local root.
            is_dir: Whether the path names a directory.

        Returns:
            True on the first matching pattern.
        """
        if is_dir:
            relative_path = ensure_trailing_separator(relative_path)
        return any(fnmatchcase(relative_path, pattern) for pattern in self._patterns)

    def rsync_arguments(self) -> list[str]:
        """Render the patterns as rsync --exclude arguments."""
        return [f"--exclude={pattern}" for pattern in self._patterns]
