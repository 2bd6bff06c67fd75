"""Process channel adapter.

Owns a child process and exposes its stdout/stdin as a line-oriented
request/response pipe. The child's stderr stays attached to ours so launch
failures are visible.

Lines are read through an explicit buffer: a line longer than
``max_line_bytes`` raises LineTooLong instead of being truncated, and an
optional ``read_timeout_s`` bounds how long read_line may block.
"""

from __future__ import annotations

import os
import selectors
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from ..core.errors import (
    ChannelIOError,
    ChannelTimeout,
    LineTooLong,
    ProtocolViolation,
    SpawnError,
)
from ..core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_LINE_BYTES = 65536
READ_CHUNK = 4096


class ProcessChannel:
    """Bidirectional line channel to a child process."""

    def __init__(
        self,
        proc: subprocess.Popen,
        *,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
        read_timeout_s: float | None = None,
    ) -> None:
        if proc.stdin is None or proc.stdout is None:
            raise ValueError("Child process must be started with stdin and stdout pipes")
        self._proc = proc
        self.max_line_bytes = max_line_bytes
        self.read_timeout_s = read_timeout_s
        self._buffer = bytearray()
        self._eof = False
        self._closed = False
        self._selector: selectors.BaseSelector | None = None

    @classmethod
    def spawn(
        cls,
        argv: Sequence[str | Path],
        *,
        env: Mapping[str, str] | None = None,
        cwd: str | Path | None = None,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
        read_timeout_s: float | None = None,
    ) -> ProcessChannel:
        """Start ``argv`` (no shell) with piped stdin/stdout.

        Raises:
            SpawnError: if the process cannot be created.
        """
        cmd = [str(a) for a in argv]
        if not cmd:
            raise SpawnError("Cannot spawn an empty command")

        logger.info("Executing command", argv=cmd)
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=None,
                bufsize=0,
                env=dict(env) if env is not None else None,
                cwd=cwd,
            )
        except (OSError, ValueError) as e:
            raise SpawnError(f"Unable to start {cmd[0]!r}: {e}") from e

        return cls(proc, max_line_bytes=max_line_bytes, read_timeout_s=read_timeout_s)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def returncode(self) -> int | None:
        return self._proc.poll()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ChannelIOError("Channel is closed")

    def _wait_readable(self, deadline: float) -> None:
        if self._selector is None:
            self._selector = selectors.DefaultSelector()
            self._selector.register(self._proc.stdout, selectors.EVENT_READ)
        remaining = deadline - time.monotonic()
        if remaining <= 0 or not self._selector.select(remaining):
            raise ChannelTimeout(self.read_timeout_s)

    def _fill(self, deadline: float | None) -> None:
        if deadline is not None:
            self._wait_readable(deadline)
        try:
            chunk = os.read(self._proc.stdout.fileno(), READ_CHUNK)
        except OSError as e:
            raise ChannelIOError(f"Unable to read from child: {e}") from e
        if chunk:
            self._buffer += chunk
        else:
            self._eof = True

    def read_line(self) -> str | None:
        """Read one line from the child, without its trailing newline.

        Returns:
            The decoded line, or None on clean end of stream.

        Raises:
            LineTooLong: the line exceeds ``max_line_bytes``.
            ChannelTimeout: no complete line within ``read_timeout_s``.
            ChannelIOError: read failure or end of stream mid-line.
        """
        self._ensure_open()
        deadline = None
        if self.read_timeout_s is not None:
            deadline = time.monotonic() + self.read_timeout_s

        while True:
            end = self._buffer.find(b"\n")
            if end >= 0:
                if end > self.max_line_bytes:
                    raise LineTooLong(self.max_line_bytes)
                raw = bytes(self._buffer[:end])
                del self._buffer[: end + 1]
                try:
                    return raw.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise ProtocolViolation(f"Child sent non UTF-8 data: {raw!r}") from e

            if len(self._buffer) > self.max_line_bytes:
                raise LineTooLong(self.max_line_bytes)
            if self._eof:
                if self._buffer:
                    raise ChannelIOError(
                        f"Child closed its output mid-line: {bytes(self._buffer)!r}"
                    )
                return None
            self._fill(deadline)

    def write_line(self, text: str) -> None:
        """Write ``text`` to the child, appending a newline if absent."""
        self._ensure_open()
        if not text.endswith("\n"):
            text += "\n"
        view = memoryview(text.encode("utf-8"))
        try:
            while view:
                written = os.write(self._proc.stdin.fileno(), view)
                view = view[written:]
        except OSError as e:
            raise ChannelIOError(f"Unable to write to child: {e}") from e

    def flush(self) -> None:
        """Force delivery of everything written so far."""
        self._ensure_open()
        try:
            self._proc.stdin.flush()
        except OSError as e:
            raise ChannelIOError(f"Unable to flush to child: {e}") from e

    def close(self, timeout_s: float = 5.0) -> int | None:
        """Close both pipe ends and reap the child.

        The child gets ``timeout_s`` to exit on its own after seeing end of
        stream; it is killed afterwards. Safe to call more than once.

        Returns:
            The child's exit code.
        """
        if self._closed:
            return self._proc.returncode
        self._closed = True

        if self._selector is not None:
            self._selector.close()
            self._selector = None

        for stream in (self._proc.stdin, self._proc.stdout):
            try:
                stream.close()
            except OSError as e:
                # Pipe already broken by the child exiting.
                logger.debug("Ignoring error while closing pipe", error=str(e))

        try:
            code = self._proc.wait(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            logger.warn("Child did not exit after close, killing it", pid=self._proc.pid)
            self._proc.kill()
            code = self._proc.wait()

        logger.debug("Child reaped", pid=self._proc.pid, returncode=code)
        return code

    def __enter__(self) -> ProcessChannel:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
