from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

import requests

from .context import Context
from .policy import RetryPolicy, new_policy, retry_always, with_retryable
from .runner import retry_call


logger = logging.getLogger(__name__)


DEFAULT_UA = "retrykit/0.1"
RETRYABLE_STATUS = frozenset({408, 425, 429})


def is_transient_http_error(exc: Exception) -> bool:
    """Timeouts, connection failures, 5xx and throttling statuses are worth retrying."""
    if isinstance(exc, (requests.Timeout, requests.ConnectionError)):
        return True
    if isinstance(exc, requests.HTTPError):
        resp = exc.response
        if resp is None:
            return True
        return resp.status_code in RETRYABLE_STATUS or resp.status_code >= 500
    return False


def get_text(
    url: str,
    policy: Optional[RetryPolicy] = None,
    ctx: Optional[Context] = None,
    session: Optional[requests.Session] = None,
    timeout_sec: float = 30.0,
    user_agent: str = DEFAULT_UA,
) -> str:
    if policy is None:
        policy = new_policy(4, with_retryable(is_transient_http_error))
    elif policy.retryable is retry_always:
        policy = replace(policy, retryable=is_transient_http_error)

    def _do(s: requests.Session) -> str:
        r = s.get(url, headers={"User-Agent": user_agent}, timeout=timeout_sec)
        r.raise_for_status()
        return r.text

    logger.debug("GET %s", url)
    if session is not None:
        return retry_call(lambda: _do(session), policy=policy, ctx=ctx)
    with requests.Session() as own:
        return retry_call(lambda: _do(own), policy=policy, ctx=ctx)
