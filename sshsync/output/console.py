# sshsync Console Output
# Rich-based timestamped log lines for the long-running watch loop

import shlex
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from rich.console import Console as RichConsole
from rich.markup import escape

from sshsync.sync.actions import ExecutionResult

TIME_FORMAT = "%H:%M:%S"
SEPARATOR = "  ##  "


def printable(text: str) -> str:
    """Replace undecodable filename bytes (lone surrogates) so any stream can encode the text."""
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


class Console:
    """
    Console output manager using Rich.

    Every line starts with a wall-clock timestamp. A message may be left
    open (newline=False) so that the outcome of the step it announces is
    appended to the same line.
    """

    def __init__(
        self,
        *,
        verbose: bool = False,
        colored: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize console.

        Args:
            verbose: Echo external commands before running them.
            colored: Enable colored output.
            clock: Source of the timestamp (datetime.now if not provided).
        """
        self.verbose = verbose
        self._clock = clock or datetime.now
        self._console = RichConsole(no_color=not colored, highlight=False)
        self._line_open = False
        self._open_line: Optional[tuple[str, bool, Optional[str]]] = None

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def log(self, message: str, *, newline: bool = True, timestamp: bool = True, style: Optional[str] = None) -> None:
        """
        Print a log message.

        Args:
            message: Plain text (markup is escaped).
            newline: End the line after the message.
            timestamp: Prefix the line with the current time.
            style: Optional Rich style for the message.
        """
        text = escape(printable(message))
        if style:
            text = f"[{style}]{text}[/{style}]"
        prefix = f"[dim]{self._clock().strftime(TIME_FORMAT)}{SEPARATOR}[/dim]" if timestamp else ""
        self._console.print(prefix + text, end="\n" if newline else "", soft_wrap=True)
        self._line_open = not newline
        self._open_line = None if newline else (message, timestamp, style)

    def print_info(self, message: str, *, newline: bool = True) -> None:
        self.log(message, newline=newline)

    def print_success(self, message: str) -> None:
        self.log(message, style="green")

    def print_warning(self, message: str) -> None:
        self.log(message, style="yellow")

    def print_error(self, message: str) -> None:
        self.log(message, style="red")

    def finish_line(self, message: str, *, style: Optional[str] = None) -> None:
        """Complete a line left open by log(newline=False)."""
        self.log(message, timestamp=False, style=style)

    def print_change(self, path: str, *, deleted: bool = False) -> None:
        """Print one classified path of a flushed batch."""
        if deleted:
            self.log(f"  * DEL: {path}", style="red")
        else:
            self.log(f"  * UPL: {path}", style="cyan")

    def print_result(self, result: ExecutionResult) -> None:
        """Complete the open line with the outcome of an operation."""
        if result.success:
            self.finish_line(f" completed in {result.elapsed:.3f} s", style="green")
        else:
            self.finish_line(f" failed after {result.elapsed:.3f} s", style="red")
            if result.error and self.verbose:
                self.print_error(f"  {result.error}")

    def print_command(self, cmd: list[str]) -> None:
        """Echo an external command (verbose mode only)."""
        if self.verbose:
            reopen = self._open_line if self._line_open else None
            if self._line_open:
                self._console.print()
                self._line_open = False
            self.log(f"$ {shlex.join(cmd)}", style="dim")
            if reopen:
                # Repeat the announcement so the outcome lands next to it
                message, timestamp, style = reopen
                self.log(message, newline=False, timestamp=timestamp, style=style)


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Echo external commands.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
