from __future__ import annotations


class RetryError(Exception):
    """Base class for errors raised by retrykit itself (never by actions)."""


class PolicyError(RetryError, ValueError):
    """Invalid retry policy configuration."""


class Cancelled(RetryError):
    """The caller's context was cancelled before the action succeeded."""

    def __init__(self, message: str = "context cancelled") -> None:
        super().__init__(message)


class DeadlineExceeded(Cancelled):
    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)
