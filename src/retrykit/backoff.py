from __future__ import annotations

import random
from typing import Optional

from .policy import RetryPolicy


def nominal_delay(attempt: int, policy: RetryPolicy) -> float:
    """Delay after failed `attempt` (1-based) before jitter, clamped to max."""
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    if policy.base_delay_sec == 0:
        return 0.0
    try:
        raw = policy.base_delay_sec * (policy.multiplier ** (attempt - 1))
    except OverflowError:
        return policy.max_delay_sec
    return min(raw, policy.max_delay_sec)


def compute_delay(attempt: int, policy: RetryPolicy, rng: Optional[random.Random] = None) -> float:
    delay = nominal_delay(attempt, policy)
    if policy.jitter == 0 or delay == 0:
        return delay
    rng = rng or random.Random()
    spread = policy.jitter * delay
    delay = delay + rng.uniform(-spread, spread)
    return min(policy.max_delay_sec, max(0.0, delay))


def delay_schedule(policy: RetryPolicy, count: int) -> list[float]:
    return [nominal_delay(n, policy) for n in range(1, count + 1)]
