"""sshsync - Mirror a local directory onto a remote host over ssh.

Watches a local tree with inotify and pushes every change with rsync over
a persistent, self-healing ssh master connection.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "SshSyncConfig",
    "SyncTarget",
    "ConnectionSupervisor",
    "ChangeAggregator",
    "ExclusionMatcher",
    "SyncPlanner",
    "SyncExecutor",
    "SyncEngine",
    "SyncSupervisor",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("SshSyncConfig", "SyncTarget"):
        from sshsync.config import schema

        return getattr(schema, name)
    if name == "ConnectionSupervisor":
        from sshsync.ssh.session import ConnectionSupervisor

        return ConnectionSupervisor
    if name in ("ChangeAggregator", "ExclusionMatcher", "SyncPlanner", "SyncExecutor", "SyncEngine", "SyncSupervisor"):
        from sshsync import sync

        return getattr(sync, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
