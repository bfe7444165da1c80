# sshsync Sync Executor
# Run rsync transfers and remote removals, timing each call

from __future__ import annotations

import shlex
import subprocess
import time
from typing import TYPE_CHECKING, Optional

from sshsync.config.schema import SyncTarget, TransferConfig
from sshsync.ssh.operations import SshError, remote_remove_command
from sshsync.sync.actions import ExecutionResult, OperationType, SyncOperation
from sshsync.sync.exclude import ExclusionMatcher

if TYPE_CHECKING:
    from sshsync.output.console import Console
    from sshsync.ssh.session import ConnectionSupervisor

# rsync source meaning "the whole local root" (relative to cwd)
FULL_TREE_SOURCE = "./"

# archive, compress, preserve executability, relative paths
RSYNC_FLAGS = "-azER"


class SyncExecutor:
    """
    Run sync operations against the remote mirror.

    Calls are synchronous and never retried; a failure is reported in the
    returned ExecutionResult.
    """

    def __init__(
        self,
        target: SyncTarget,
        session: ConnectionSupervisor,
        config: Optional[TransferConfig] = None,
        *,
        matcher: Optional[ExclusionMatcher] = None,
        console: Optional[Console] = None,
    ):
        """
        Initialize executor.

        Args:
            target: Local root and remote destination.
            session: Connection supervisor whose ssh options and session are reused.
            config: Transfer settings (defaults if not provided).
            matcher: Exclusion rules rendered as rsync --exclude arguments.
            console: Optional console for echoing commands in verbose mode.
        """
        self.target = target
        self.session = session
        self.config = config or TransferConfig()
        self.matcher = matcher or ExclusionMatcher(self.config.exclude)
        self.console = console

    def rsync_command(self, sources: list[str]) -> list[str]:
        """
        Build the rsync argument list for the given sources.

        Args:
            sources: Paths relative to the local root, or FULL_TREE_SOURCE.

        Returns:
            Argument list, to be run with cwd set to the local root.
        """
        return [
            self.config.rsync_command,
            RSYNC_FLAGS,
            "-e",
            self.session.options.shell_command(),
            *shlex.split(self.config.rsync_args),
            *self.matcher.rsync_arguments(),
            "--",
            *sources,
            self.target.remote_path,
        ]

    def execute(self, operation: SyncOperation) -> ExecutionResult:
        """
        Run one planned operation.

        Args:
            operation: Operation from the planner.

        Returns:
            ExecutionResult with timing and exit status.
        """
        if operation.op_type == OperationType.REMOVE:
            return self._run_remove(operation)
        if operation.op_type == OperationType.FULL_RESYNC:
            return self._run_rsync(operation, [FULL_TREE_SOURCE])
        return self._run_rsync(operation, operation.paths)

    def transfer(self, paths: list[str]) -> ExecutionResult:
        """Upload the given relative paths."""
        return self.execute(SyncOperation(OperationType.TRANSFER, list(paths)))

    def remove(self, paths: list[str]) -> ExecutionResult:
        """Delete the given relative paths on the remote."""
        return self.execute(SyncOperation(OperationType.REMOVE, list(paths)))

    def full_sync(self, reason: str = "") -> ExecutionResult:
        """Upload the whole local root."""
        return self.execute(SyncOperation(OperationType.FULL_RESYNC, reason=reason))

    def _run_rsync(self, operation: SyncOperation, sources: list[str]) -> ExecutionResult:
        cmd = self.rsync_command(sources)
        self._echo(cmd)

        started = time.perf_counter()
        try:
            completed = subprocess.run(cmd, cwd=self.target.local_root, check=False)
        except FileNotFoundError:
            return ExecutionResult(
                operation=operation,
                success=False,
                elapsed=time.perf_counter() - started,
                error=f"{self.config.rsync_command} command not found. Is rsync installed?",
            )
        elapsed = time.perf_counter() - started

        return ExecutionResult(
            operation=operation,
            success=completed.returncode == 0,
            elapsed=elapsed,
            returncode=completed.returncode,
            error=None if completed.returncode == 0 else f"rsync exited with code {completed.returncode}",
        )

    def _run_remove(self, operation: SyncOperation) -> ExecutionResult:
        command = remote_remove_command(self.target.remote_dir, operation.paths)
        self._echo([*self.session.options.base_command(), self.target.remote_address, command])

        started = time.perf_counter()
        try:
            completed = self.session.run_remote(command)
        except SshError as e:
            return ExecutionResult(
                operation=operation,
                success=False,
                elapsed=time.perf_counter() - started,
                returncode=e.returncode,
                error=e.message,
            )
        elapsed = time.perf_counter() - started

        return ExecutionResult(
            operation=operation,
            success=completed.returncode == 0,
            elapsed=elapsed,
            returncode=completed.returncode,
            error=None if completed.returncode == 0 else f"remote removal exited with code {completed.returncode}",
        )

    def _echo(self, cmd: list[str]) -> None:
        if self.console is not None and self.console.verbose:
            self.console.print_command(cmd)
