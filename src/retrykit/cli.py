from __future__ import annotations

import argparse
import logging
import subprocess
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import requests

from .backoff import delay_schedule
from .config import load_policy_config, policy_from_dict
from .context import Context, background, with_timeout
from .errors import Cancelled, PolicyError
from .http import get_text
from .logging_utils import jsonl_append, setup_logging
from .policy import RetryPolicy
from .runner import retry_call


logger = logging.getLogger(__name__)

EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_CANCELLED = 124
EXIT_NOT_FOUND = 127


class CommandFailed(Exception):
    def __init__(self, returncode: int) -> None:
        super().__init__(f"command exited with status {returncode}")
        self.returncode = returncode


def _policy_from_args(args: argparse.Namespace) -> RetryPolicy:
    cfg = load_policy_config(Path(args.config)) if args.config else {}
    overrides = {
        "max_attempts": args.attempts,
        "base_delay_sec": args.base_delay,
        "max_delay_sec": args.max_delay,
        "multiplier": args.multiplier,
        "jitter": args.jitter,
    }
    cfg.update({k: v for k, v in overrides.items() if v is not None})
    if args.infinite:
        cfg["max_attempts"] = None
    return policy_from_dict(cfg)


def _context_from_args(args: argparse.Namespace) -> Context:
    ctx = background()
    if args.timeout is not None:
        ctx = with_timeout(ctx, args.timeout)
    return ctx


def _parse_codes(text: str) -> frozenset[int]:
    try:
        return frozenset(int(c) for c in text.split(",") if c.strip())
    except ValueError:
        raise PolicyError(f"--retry-exit-codes must be comma-separated integers, got {text!r}") from None


def _cmd_run(args: argparse.Namespace) -> int:
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        logger.error("No command given")
        return EXIT_CONFIG_ERROR

    policy = _policy_from_args(args)
    if args.retry_exit_codes:
        codes = _parse_codes(args.retry_exit_codes)
        policy = policy_with_codes(policy, codes)

    journal = Path(args.journal) if args.journal else None

    def _do() -> int:
        rc = subprocess.run(command).returncode
        if rc != 0:
            raise CommandFailed(rc)
        return rc

    def _on_retry(attempt: int, exc: Exception, delay: float) -> None:
        if journal is not None:
            jsonl_append(
                journal,
                {
                    "at": datetime.now(timezone.utc),
                    "attempt": attempt,
                    "error": str(exc),
                    "delay_sec": round(delay, 6),
                },
            )

    try:
        with _context_from_args(args) as ctx:
            return retry_call(_do, policy, ctx, on_retry=_on_retry)
    except CommandFailed as exc:
        return exc.returncode
    except OSError as exc:
        logger.error("Could not start %s: %s", command[0], exc)
        return EXIT_NOT_FOUND
    except Cancelled as exc:
        logger.error("Stopped: %s", exc)
        return EXIT_CANCELLED


def policy_with_codes(policy: RetryPolicy, codes: frozenset[int]) -> RetryPolicy:
    def _retryable(exc: Exception) -> bool:
        return isinstance(exc, CommandFailed) and exc.returncode in codes

    return replace(policy, retryable=_retryable)


def _cmd_delays(args: argparse.Namespace) -> int:
    policy = _policy_from_args(args)
    for n, d in enumerate(delay_schedule(policy, args.count), start=1):
        print(f"{n}\t{d:.3f}")
    return 0


def _cmd_fetch(args: argparse.Namespace) -> int:
    policy = _policy_from_args(args)
    try:
        with _context_from_args(args) as ctx:
            sys.stdout.write(get_text(args.url, policy=policy, ctx=ctx))
    except Cancelled as exc:
        logger.error("Stopped: %s", exc)
        return EXIT_CANCELLED
    except requests.RequestException as exc:
        logger.error("Fetch failed: %s", exc)
        return EXIT_FAILED
    return 0


def _add_policy_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=str, default=None, help="YAML/JSON policy file")
    p.add_argument("--attempts", type=int, default=None)
    p.add_argument("--infinite", action="store_true", default=False)
    p.add_argument("--base-delay", type=float, default=None, help="Seconds before the first retry")
    p.add_argument("--max-delay", type=float, default=None)
    p.add_argument("--multiplier", type=float, default=None)
    p.add_argument("--jitter", type=float, default=None, help="Fraction in [0, 1]")
    p.add_argument("--timeout", type=float, default=None, help="Overall deadline in seconds")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="retrykit")
    p.add_argument("--log-dir", type=str, default=None)
    p.add_argument("-v", "--verbose", action="store_true", default=False)
    sub = p.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Run a command until it succeeds")
    _add_policy_args(run)
    run.add_argument("--retry-exit-codes", type=str, default=None, help="Comma-separated exit codes to retry")
    run.add_argument("--journal", type=str, default=None, help="Append one JSON line per retry")
    run.add_argument("command", nargs=argparse.REMAINDER)
    run.set_defaults(func=_cmd_run)

    delays = sub.add_parser("delays", help="Print the nominal backoff schedule")
    _add_policy_args(delays)
    delays.add_argument("--count", type=int, default=5)
    delays.set_defaults(func=_cmd_delays)

    fetch = sub.add_parser("fetch", help="GET a URL with retries")
    _add_policy_args(fetch)
    fetch.add_argument("url")
    fetch.set_defaults(func=_cmd_fetch)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(Path(args.log_dir) if args.log_dir else None, logging.DEBUG if args.verbose else logging.INFO)
    try:
        return args.func(args)
    except PolicyError as exc:
        logger.error("Invalid policy: %s", exc)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
