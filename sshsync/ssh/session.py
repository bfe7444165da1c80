# sshsync SSH Session
# Lifecycle of the persistent ssh master connection

import contextlib
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from sshsync.config.schema import ConnectionConfig
from sshsync.ssh.operations import (
    READY_MARKER,
    SshOptions,
    exit_master,
    master_command,
    run_remote,
)
from sshsync.utils.streams import LineReader, StreamClosed

# Seconds to wait for a terminated master before killing it
TERMINATE_TIMEOUT = 5.0


class SessionState(str, Enum):
    """Connection supervisor states."""

    CLOSED = "closed"
    OPENING = "opening"
    ALIVE = "alive"


@dataclass
class Session:
    """One live ssh master connection."""

    remote_address: str
    control_path: str
    keepalive_interval: int
    identity_file: Optional[str]
    process: subprocess.Popen
    opened_at: float = field(default_factory=time.time)
    closed: bool = False

    @property
    def alive(self) -> bool:
        """True while the master process is running and not closed."""
        return not self.closed and self.process.poll() is None


class ConnectionSupervisor:
    """
    Opens, health-checks and tears down the ssh master connection.

    At most one Session exists at a time. Every other ssh invocation
    (rsync's -e command, remote removals) uses the same ControlPath and is
    multiplexed over it.
    """

    def __init__(
        self,
        remote_address: str,
        options: SshOptions,
        *,
        ready_timeout: Optional[float] = None,
        keepalive_interval: Optional[int] = None,
    ):
        """
        Initialize supervisor.

        Args:
            remote_address: Destination host, optionally user@host.
            options: Shared ssh options.
            ready_timeout: Seconds to wait for the readiness marker (default: connect timeout).
            keepalive_interval: ServerAliveInterval (default: connect timeout).
        """
        self.remote_address = remote_address
        self.options = options
        self.ready_timeout = ready_timeout if ready_timeout is not None else float(options.connect_timeout)
        self.keepalive_interval = keepalive_interval or options.connect_timeout
        self.state = SessionState.CLOSED
        self.session: Optional[Session] = None
        self.last_error: Optional[str] = None

    @classmethod
    def from_config(cls, remote_address: str, config: ConnectionConfig) -> "ConnectionSupervisor":
        """Build a supervisor from the connection section of the configuration."""
        return cls(
            remote_address,
            SshOptions.from_config(config),
            ready_timeout=config.effective_ready_timeout,
            keepalive_interval=config.connect_timeout,
        )

    @property
    def is_alive(self) -> bool:
        """True if a session is open and its master is running."""
        return self.state == SessionState.ALIVE and self.session is not None and self.session.alive

    def open(self) -> bool:
        """
        Start a new master connection.

        Any master left on the control path (e.g. by a crashed run) is asked
        to exit first.

        Returns:
            True if the master reported readiness in time.
        """
        if self.session is not None:
            self._release(self.session, send_exit=False)

        exit_master(self.options, self.remote_address)

        self.state = SessionState.OPENING
        self.last_error = None

        cmd = master_command(self.options, self.remote_address, self.keepalive_interval)
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            self.last_error = f"could not start {self.options.ssh_command}: {e}"
            self.state = SessionState.CLOSED
            return False

        response = self._wait_ready(LineReader(process.stdout))

        if response == READY_MARKER and process.poll() is None:
            self.session = Session(
                remote_address=self.remote_address,
                control_path=self.options.control_path,
                keepalive_interval=self.keepalive_interval,
                identity_file=self.options.identity_file,
                process=process,
            )
            self.state = SessionState.ALIVE
            return True

        self.last_error = self._failure_reason(process, response)
        self._terminate(process)
        self.state = SessionState.CLOSED
        return False

    def health_check(self) -> bool:
        """
        Non-blocking liveness check of the master process.

        Returns:
            True if the session is still alive.
        """
        if self.session is None or self.state != SessionState.ALIVE:
            return False

        returncode = self.session.process.poll()
        if returncode is not None:
            self.last_error = f"master connection exited with code {returncode}"
            self.state = SessionState.CLOSED
            return False

        return True

    def close(self) -> None:
        """Tear down the current session. Safe to call any number of times."""
        session = self.session
        if session is None or session.closed:
            return
        self._release(session, send_exit=True)

    def run_remote(self, command: str) -> subprocess.CompletedProcess[str]:
        """Run a shell command on the remote host over the session."""
        return run_remote(self.options, self.remote_address, command)

    def _release(self, session: Session, *, send_exit: bool) -> None:
        session.closed = True
        self.session = None
        self.state = SessionState.CLOSED
        if send_exit:
            exit_master(self.options, self.remote_address)
        self._terminate(session.process)

    def _wait_ready(self, reader: LineReader) -> Optional[str]:
        """Read master output until the readiness marker or the deadline."""
        deadline = time.monotonic() + self.ready_timeout
        last_line: Optional[str] = None

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return last_line
            try:
                line = reader.read_line(remaining)
            except StreamClosed:
                return last_line
            if line is None:
                continue

            line = line.strip()
            if line == READY_MARKER:
                return line
            if line:
                last_line = line

    def _failure_reason(self, process: subprocess.Popen, response: Optional[str]) -> str:
        if process.poll() is not None:
            stderr = b""
            if process.stderr is not None:
                with contextlib.suppress(OSError, ValueError):
                    stderr = process.stderr.read()
            message = stderr.decode("utf-8", errors="replace").strip()
            if message:
                return message.splitlines()[-1]
            return f"ssh exited with code {process.returncode}"
        if response:
            return f"unexpected response: {response}"
        return f"no response within {self.ready_timeout:g} s"

    @staticmethod
    def _terminate(process: subprocess.Popen) -> None:
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=TERMINATE_TIMEOUT)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()

        for stream in (process.stdin, process.stdout, process.stderr):
            if stream is not None:
                with contextlib.suppress(OSError):
                    stream.close()
