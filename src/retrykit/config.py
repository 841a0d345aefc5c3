from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import PolicyError
from .policy import (
    RetryPolicy,
    new_policy,
    with_base_delay,
    with_jitter,
    with_max_delay,
    with_multiplier,
)


_OPTION_BUILDERS = {
    "base_delay_sec": with_base_delay,
    "max_delay_sec": with_max_delay,
    "multiplier": with_multiplier,
    "jitter": with_jitter,
}


def load_policy_config(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        cfg = yaml.safe_load(text)
    else:
        cfg = json.loads(text) if text.strip() else None
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise PolicyError(f"{path}: policy config must be a mapping, got {type(cfg).__name__}")
    return cfg


def _parse_attempts(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        if value.strip().lower() in {"infinite", "unbounded"}:
            return None
        try:
            return int(value)
        except ValueError:
            raise PolicyError(f"max_attempts must be an int or 'infinite', got {value!r}") from None
    return value


def policy_from_dict(cfg: dict[str, Any]) -> RetryPolicy:
    unknown = set(cfg) - set(_OPTION_BUILDERS) - {"max_attempts"}
    if unknown:
        raise PolicyError(f"Unknown policy keys: {', '.join(sorted(unknown))}")
    options = [build(cfg[key]) for key, build in _OPTION_BUILDERS.items() if key in cfg]
    return new_policy(_parse_attempts(cfg.get("max_attempts", 3)), *options)
