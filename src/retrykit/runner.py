from __future__ import annotations

import logging
import random
from typing import Callable, Optional, TypeVar

from .backoff import compute_delay
from .context import Context, background
from .errors import Cancelled
from .policy import RetryPolicy, new_policy, with_base_delay, with_max_delay


logger = logging.getLogger(__name__)

T = TypeVar("T")

OnRetry = Callable[[int, Exception, float], None]

DO_MAX_ATTEMPTS = 3
DO_BASE_DELAY_SEC = 0.1
DO_MAX_DELAY_SEC = 1.0


def _cancelled(ctx: Context) -> Cancelled:
    # ctx.error is shared by every caller of the context; raise a copy.
    err = ctx.error
    if err is None:
        return Cancelled()
    return type(err)(str(err))


def retry_call(
    fn: Callable[[], T],
    policy: RetryPolicy,
    ctx: Optional[Context] = None,
    on_retry: Optional[OnRetry] = None,
) -> T:
    """Call `fn` until it succeeds, following `policy`.

    Raises the last exception from `fn` when attempts run out or the
    exception is not retryable, or the context's `Cancelled` error if the
    context fires before the next attempt can start.
    """
    ctx = ctx or background()
    rng = random.Random()
    attempt = 0
    while True:
        if ctx.cancelled:
            raise _cancelled(ctx) from ctx.error
        attempt += 1
        try:
            return fn()
        except Exception as exc:  # noqa: BLE001
            if policy.max_attempts is not None and attempt >= policy.max_attempts:
                logger.warning("Giving up after %d attempt(s): %r", attempt, exc)
                raise
            if not policy.retryable(exc):
                logger.warning("Attempt %d failed with non-retryable error: %r", attempt, exc)
                raise
            delay = compute_delay(attempt, policy, rng)
            logger.info("Attempt %d failed (%r); retrying in %.3fs", attempt, exc, delay)
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            if ctx.wait(delay):
                logger.info("Retry loop cancelled after %d attempt(s)", attempt)
                raise _cancelled(ctx) from ctx.error


def do(ctx: Optional[Context], fn: Callable[[], T]) -> T:
    policy = new_policy(
        DO_MAX_ATTEMPTS,
        with_base_delay(DO_BASE_DELAY_SEC),
        with_max_delay(DO_MAX_DELAY_SEC),
    )
    return retry_call(fn, policy, ctx)


def infinite(ctx: Optional[Context], fn: Callable[[], T], policy: Optional[RetryPolicy] = None) -> T:
    """Retry `fn` until it succeeds, hits a non-retryable error, or `ctx` is cancelled."""
    policy = policy.unbounded() if policy is not None else new_policy(None)
    return retry_call(fn, policy, ctx)
