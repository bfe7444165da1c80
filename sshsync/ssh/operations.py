# sshsync SSH Operations
# ssh command construction and one-shot ssh invocations

import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional

from sshsync.config.schema import DEFAULT_CONTROL_PATH, ConnectionConfig

# Printed by the remote side once the master connection is usable
READY_MARKER = "done"


class SshError(Exception):
    """Exception raised for ssh operation errors."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


@dataclass(frozen=True)
class SshOptions:
    """Options shared by every ssh invocation against one control path."""

    ssh_command: str = "ssh"
    identity_file: Optional[str] = None
    connect_timeout: int = 5
    control_path: str = DEFAULT_CONTROL_PATH

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> "SshOptions":
        """Build options from the connection section of the configuration."""
        return cls(
            ssh_command=config.ssh_command,
            identity_file=config.identity_file,
            connect_timeout=config.connect_timeout,
            control_path=config.control_path,
        )

    def base_command(self) -> list[str]:
        """
        ssh argument list without destination.

        Every command shares ControlMaster=auto and the same ControlPath, so
        once a master is running all of them ride on its connection.
        """
        cmd = [
            self.ssh_command,
            "-o",
            "ControlMaster=auto",
            "-o",
            f"ControlPath={self.control_path}",
            "-o",
            f"ConnectTimeout={self.connect_timeout}",
            "-o",
            "ConnectionAttempts=1",
        ]
        if self.identity_file:
            cmd.extend(["-i", self.identity_file])
        return cmd

    def shell_command(self) -> str:
        """base_command() rendered as one shell string, for rsync -e."""
        return shlex.join(self.base_command())


def _run_ssh(
    options: SshOptions,
    *args: str,
    check: bool = True,
    capture_output: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run an ssh command.

    Args:
        options: Shared ssh options.
        *args: Additional ssh arguments (destination, remote command).
        check: Whether to raise on non-zero exit.
        capture_output: Whether to capture stdout/stderr.

    Returns:
        CompletedProcess with result.

    Raises:
        SshError: If command fails and check is True, or ssh is missing.
    """
    cmd = [*options.base_command(), *args]
    try:
        result = subprocess.run(
            cmd,
            check=False,
            capture_output=capture_output,
            text=True,
        )
    except FileNotFoundError:
        raise SshError(f"{options.ssh_command} command not found. Is OpenSSH installed?")

    if check and result.returncode != 0:
        raise SshError(
            f"ssh command failed: {shlex.join(cmd)}",
            returncode=result.returncode,
            stderr=result.stderr.strip() if result.stderr else "",
        )
    return result


def master_command(options: SshOptions, remote_address: str, keepalive_interval: int) -> list[str]:
    """
    Build the command that starts a long-lived master connection.

    The remote side prints READY_MARKER and then sleeps forever, so the
    local process stays alive exactly as long as the connection does.

    Args:
        options: Shared ssh options.
        remote_address: Destination host, optionally user@host.
        keepalive_interval: ServerAliveInterval in seconds.

    Returns:
        Argument list for subprocess.Popen.
    """
    return [
        *options.base_command(),
        "-M",
        "-tt",
        "-o",
        f"ServerAliveInterval={keepalive_interval}",
        "-o",
        "ServerAliveCountMax=1",
        "-o",
        "ControlPersist=1s",
        remote_address,
        f"echo {READY_MARKER} && sleep infinity",
    ]


def exit_master(options: SshOptions, remote_address: str) -> bool:
    """
    Ask a running master on the control path to exit.

    Args:
        options: Shared ssh options.
        remote_address: Destination host, optionally user@host.

    Returns:
        True if a master was running and accepted the request.
    """
    try:
        _run_ssh(options, "-O", "exit", remote_address)
        return True
    except SshError:
        return False


def run_remote(
    options: SshOptions,
    remote_address: str,
    command: str,
    *,
    check: bool = False,
    capture_output: bool = False,
) -> subprocess.CompletedProcess[str]:
    """
    Run a shell command on the remote host.

    Args:
        options: Shared ssh options.
        remote_address: Destination host, optionally user@host.
        command: Remote shell command line.
        check: Whether to raise on non-zero exit.
        capture_output: Whether to capture stdout/stderr.

    Returns:
        CompletedProcess with result.
    """
    return _run_ssh(options, remote_address, command, check=check, capture_output=capture_output)


def remote_remove_command(remote_dir: str, paths: list[str]) -> str:
    """
    Build the remote shell command removing paths below remote_dir.

    Args:
        remote_dir: Remote mirror directory.
        paths: Paths relative to remote_dir.

    Returns:
        Shell command line with every argument quoted.
    """
    quoted = " ".join(shlex.quote(path) for path in paths)
    return f"cd {shlex.quote(remote_dir)} && rm -rf -- {quoted}"
