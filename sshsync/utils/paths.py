# sshsync Path Utilities
# Relative path handling for watcher events

import os
from pathlib import Path


def ensure_trailing_separator(path: str) -> str:
    """Append "/" unless the path already ends with one."""
    return path if path.endswith("/") else path + "/"


def resolve_event_path(local_root: Path, path: str) -> str:
    """
    Turn a watcher path into an absolute path string.

    Args:
        local_root: Watched root directory.
        path: Absolute or root-relative path.

    Returns:
        Absolute path string.
    """
    if os.path.isabs(path):
        return path
    return os.path.join(str(local_root), path)


def get_relative_path(local_root: Path, path: str) -> str:
    """
    Strip the local root prefix from a path.

    Paths outside the root are returned unchanged. A trailing separator on
    the input is preserved.

    Args:
        local_root: Watched root directory.
        path: Path reported by the watcher.

    Returns:
        Path relative to local_root ("" for the root itself).
    """
    prefix = ensure_trailing_separator(str(local_root))
    if path.startswith(prefix):
        return path[len(prefix) :]
    if path.rstrip("/") == prefix.rstrip("/"):
        return ""
    return path
