# sshsync SSH Module
# Persistent master connection and ssh command execution

from sshsync.ssh.operations import (
    READY_MARKER,
    SshError,
    SshOptions,
    exit_master,
    master_command,
    remote_remove_command,
    run_remote,
)
from sshsync.ssh.session import ConnectionSupervisor, Session, SessionState

__all__ = [
    # Operations
    "READY_MARKER",
    "SshError",
    "SshOptions",
    "exit_master",
    "master_command",
    "remote_remove_command",
    "run_remote",
    # Session
    "ConnectionSupervisor",
    "Session",
    "SessionState",
]
