"""Retry engine with exponential backoff, jitter and cancellation.

Build a `RetryPolicy` (directly or with `new_policy` and options), then hand
it and a zero-argument callable to `retry_call`. `do` and `infinite` are
shortcuts for the common bounded and unbounded cases.
"""

from .backoff import compute_delay, delay_schedule
from .containers import ConcurrentList, ConcurrentMap
from .context import Context, background, with_cancel, with_timeout
from .errors import Cancelled, DeadlineExceeded, PolicyError, RetryError
from .policy import (
    INFINITE,
    RetryPolicy,
    new_policy,
    with_base_delay,
    with_jitter,
    with_max_delay,
    with_multiplier,
    with_retryable,
)
from .runner import do, infinite, retry_call

__all__ = [
    "INFINITE",
    "Cancelled",
    "ConcurrentList",
    "ConcurrentMap",
    "Context",
    "DeadlineExceeded",
    "PolicyError",
    "RetryError",
    "RetryPolicy",
    "background",
    "compute_delay",
    "delay_schedule",
    "do",
    "infinite",
    "new_policy",
    "retry_call",
    "with_base_delay",
    "with_cancel",
    "with_jitter",
    "with_max_delay",
    "with_multiplier",
    "with_retryable",
    "with_timeout",
]
