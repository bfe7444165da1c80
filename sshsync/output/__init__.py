# sshsync Output Module
# Rich console output

from sshsync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
