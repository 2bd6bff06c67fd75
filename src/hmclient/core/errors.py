"""Error taxonomy for the HyperMapper client.

Every error is fatal to a session: the two sides of the line protocol share
turn-taking state that cannot be resynchronized once a read or write fails.
"""

from __future__ import annotations


class HMClientError(Exception):
    """Base class for all client errors."""


class ConfigError(HMClientError):
    """Missing environment, invalid configuration or unwritable output."""


class SpawnError(HMClientError):
    """A child process could not be started."""


class ProtocolViolation(HMClientError):
    """The optimizer sent something the protocol does not allow."""


class EvaluationError(HMClientError):
    """An evaluator broke its contract (e.g. wrong number of objectives)."""


class ChannelIOError(HMClientError):
    """Pipe read/write failure or unexpected end of stream."""


class LineTooLong(ChannelIOError):
    """A line from the child exceeded the configured maximum length."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Line exceeds maximum length of {limit} bytes")
        self.limit = limit


class ChannelTimeout(ChannelIOError):
    """No complete line arrived within the read timeout."""

    def __init__(self, timeout_s: float) -> None:
        super().__init__(f"No line received from child within {timeout_s:g}s")
        self.timeout_s = timeout_s


__all__ = [
    "HMClientError",
    "ConfigError",
    "SpawnError",
    "ProtocolViolation",
    "EvaluationError",
    "ChannelIOError",
    "LineTooLong",
    "ChannelTimeout",
]
