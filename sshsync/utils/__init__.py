# sshsync Utilities Module
# Helper functions for path handling and pipe reading

from sshsync.utils.paths import (
    ensure_trailing_separator,
    get_relative_path,
    resolve_event_path,
)
from sshsync.utils.streams import LineReader, StreamClosed

__all__ = [
    # Paths
    "ensure_trailing_separator",
    "get_relative_path",
    "resolve_event_path",
    # Streams
    "LineReader",
    "StreamClosed",
]
