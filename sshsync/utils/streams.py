# sshsync Stream Utilities
# Line-oriented reads from subprocess pipes with a bounded wait

import os
import select
from typing import IO, Union


class StreamClosed(EOFError):
    """Raised when the writing end of a pipe has gone away."""


class LineReader:
    """
    Read complete lines from a pipe without blocking past a timeout.

    Bytes are pulled with os.read() into an internal buffer, so lines that
    arrive together are handed out one at a time without another select().
    """

    def __init__(self, stream: Union[IO, int], *, chunk_size: int = 65536):
        """
        Initialize reader.

        Args:
            stream: File object with fileno(), or a raw file descriptor.
            chunk_size: Maximum bytes pulled per read.
        """
        self._fd = stream if isinstance(stream, int) else stream.fileno()
        self._chunk_size = chunk_size
        self._buffer = b""
        self._eof = False

    @property
    def buffered(self) -> bool:
        """True if a complete line is waiting in the buffer."""
        return b"\n" in self._buffer

    def read_line(self, timeout: float) -> str | None:
        """
        Return the next line without its newline.

        Args:
            timeout: Seconds to wait for data when nothing is buffered.

        Returns:
            The line, or None if no complete line arrived in time.

        Raises:
            StreamClosed: If the pipe reached end of file and the buffer is empty.
        """
        line = self._pop_line()
        if line is not None:
            return line

        if self._eof:
            raise StreamClosed("stream closed")

        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return None

        chunk = os.read(self._fd, self._chunk_size)
        if not chunk:
            self._eof = True
            if self._buffer:
                # Unterminated last line
                rest, self._buffer = self._buffer, b""
                return self._decode(rest)
            raise StreamClosed("stream closed")

        self._buffer += chunk
        return self._pop_line()

    def _pop_line(self) -> str | None:
        """Take one complete line off the buffer."""
        head, sep, tail = self._buffer.partition(b"\n")
        if not sep:
            return None
        self._buffer = tail
        return self._decode(head)

    @staticmethod
    def _decode(data: bytes) -> str:
        return data.decode("utf-8", errors="surrogateescape")
