# sshsync Watcher Process
# inotifywait subprocess producing one line per filesystem event

import contextlib
import subprocess
from pathlib import Path
from typing import Optional

from sshsync.utils.streams import LineReader, StreamClosed

# %e = comma-separated event names, %w%f = watched dir + file name
EVENT_FORMAT = "%e %w%f"

# Seconds to wait for a terminated watcher before killing it
TERMINATE_TIMEOUT = 5.0


class WatcherError(Exception):
    """Exception raised when the watcher cannot start or has exited."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.message = message
        self.returncode = returncode
        super().__init__(message)


class InotifyWatcher:
    """
    Recursive inotifywait monitor over the local root.

    Output is read through a LineReader, so the watch loop never blocks
    longer than its poll interval.
    """

    def __init__(
        self,
        local_root: Path,
        *,
        command: str = "inotifywait",
        events: Optional[list[str]] = None,
    ):
        """
        Initialize watcher.

        Args:
            local_root: Directory to watch recursively.
            command: inotifywait executable.
            events: inotify event names to watch. None or empty = all events.
        """
        self.local_root = local_root
        self.command = command
        self.events = list(events or [])
        self._process: Optional[subprocess.Popen] = None
        self._reader: Optional[LineReader] = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def build_command(self) -> list[str]:
        """Get the inotifywait argument list."""
        cmd = [self.command, "-m", "-r", "-q", "--format", EVENT_FORMAT]
        for event in self.events:
            cmd.extend(["-e", event])
        cmd.append(str(self.local_root))
        return cmd

    def start(self) -> None:
        """
        Launch the watcher process.

        Raises:
            WatcherError: If the executable cannot be started.
        """
        if self._process is not None:
            return

        try:
            self._process = subprocess.Popen(
                self.build_command(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            raise WatcherError(f"{self.command} command not found. Is inotify-tools installed?")
        except OSError as e:
            raise WatcherError(f"could not start {self.command}: {e}")

        self._reader = LineReader(self._process.stdout)

    def read_line(self, timeout: float) -> Optional[str]:
        """
        Wait up to timeout seconds for the next event line.

        Returns:
            The line, or None if nothing arrived.

        Raises:
            WatcherError: If the watcher is not running or its output ended.
        """
        if self._process is None or self._reader is None:
            raise WatcherError("watcher is not running")

        try:
            return self._reader.read_line(timeout)
        except StreamClosed:
            returncode = self._process.poll()
            raise WatcherError(f"{self.command} exited (code {returncode})", returncode=returncode)
        except OSError as e:
            raise WatcherError(f"reading from {self.command} failed: {e}")

    def stop(self) -> None:
        """Terminate the watcher and release its pipe. Idempotent."""
        process = self._process
        if process is None:
            return
        self._process = None
        self._reader = None

        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=TERMINATE_TIMEOUT)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()

        if process.stdout is not None:
            with contextlib.suppress(OSError):
                process.stdout.close()
