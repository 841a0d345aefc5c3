from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .errors import PolicyError


INFINITE = None

DEFAULT_BASE_DELAY_SEC = 0.1
DEFAULT_MAX_DELAY_SEC = 10.0
DEFAULT_MULTIPLIER = 2.0
DEFAULT_JITTER = 0.0

Option = Callable[[Dict[str, Any]], None]


def retry_always(exc: BaseException) -> bool:
    return exc is not None


def _check_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PolicyError(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or math.isinf(value):
        raise PolicyError(f"{name} must be finite, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration.

    max_attempts: total invocations allowed; None means unbounded.
    jitter: fraction of each delay randomised away, in [0, 1].
    retryable: predicate deciding whether an exception may be retried.
    """

    max_attempts: Optional[int] = 3
    base_delay_sec: float = DEFAULT_BASE_DELAY_SEC
    max_delay_sec: float = DEFAULT_MAX_DELAY_SEC
    multiplier: float = DEFAULT_MULTIPLIER
    jitter: float = DEFAULT_JITTER
    retryable: Callable[[Exception], bool] = field(default=retry_always, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts is not None:
            if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
                raise PolicyError(f"max_attempts must be an int or None, got {self.max_attempts!r}")
            if self.max_attempts < 1:
                raise PolicyError(f"max_attempts must be >= 1, got {self.max_attempts}")

        base = _check_number("base_delay_sec", self.base_delay_sec)
        cap = _check_number("max_delay_sec", self.max_delay_sec)
        mult = _check_number("multiplier", self.multiplier)
        jitter = _check_number("jitter", self.jitter)

        if base < 0:
            raise PolicyError(f"base_delay_sec must be >= 0, got {base}")
        if cap < 0:
            raise PolicyError(f"max_delay_sec must be >= 0, got {cap}")
        if cap < base:
            raise PolicyError(f"max_delay_sec ({cap}) must be >= base_delay_sec ({base})")
        if mult < 1.0:
            raise PolicyError(f"multiplier must be >= 1.0, got {mult}")
        if not 0.0 <= jitter <= 1.0:
            raise PolicyError(f"jitter must be within [0, 1], got {jitter}")
        if not callable(self.retryable):
            raise PolicyError("retryable must be callable")

    @property
    def bounded(self) -> bool:
        return self.max_attempts is not None

    def unbounded(self) -> "RetryPolicy":
        return new_policy(
            INFINITE,
            with_base_delay(self.base_delay_sec),
            with_max_delay(self.max_delay_sec),
            with_multiplier(self.multiplier),
            with_jitter(self.jitter),
            with_retryable(self.retryable),
        )


def with_base_delay(seconds: float) -> Option:
    def _apply(b: Dict[str, Any]) -> None:
        b["base_delay_sec"] = seconds

    return _apply


def with_max_delay(seconds: float) -> Option:
    def _apply(b: Dict[str, Any]) -> None:
        b["max_delay_sec"] = seconds

    return _apply


def with_multiplier(factor: float) -> Option:
    def _apply(b: Dict[str, Any]) -> None:
        b["multiplier"] = factor

    return _apply


def with_jitter(fraction: float) -> Option:
    def _apply(b: Dict[str, Any]) -> None:
        b["jitter"] = fraction

    return _apply


def with_retryable(predicate: Callable[[Exception], bool]) -> Option:
    def _apply(b: Dict[str, Any]) -> None:
        b["retryable"] = predicate

    return _apply


def new_policy(max_attempts: Optional[int], *options: Option) -> RetryPolicy:
    """Build a policy from defaults overlaid with options, last one wins.

    Validation happens once, after every option has been applied.
    """
    builder: Dict[str, Any] = {
        "max_attempts": max_attempts,
        "base_delay_sec": DEFAULT_BASE_DELAY_SEC,
        "max_delay_sec": DEFAULT_MAX_DELAY_SEC,
        "multiplier": DEFAULT_MULTIPLIER,
        "jitter": DEFAULT_JITTER,
        "retryable": retry_always,
    }
    for opt in options:
        opt(builder)
    return RetryPolicy(**builder)
