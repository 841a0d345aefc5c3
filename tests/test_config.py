import json

import pytest

from retrykit.config import load_policy_config, policy_from_dict
from retrykit.errors import PolicyError


def test_yaml_config(tmp_path):
    p = tmp_path / "policy.yaml"
    p.write_text("max_attempts: 6\nbase_delay_sec: 0.5\nmax_delay_sec: 4\njitter: 0.2\n", encoding="utf-8")
    policy = policy_from_dict(load_policy_config(p))
    assert policy.max_attempts == 6
    assert policy.base_delay_sec == 0.5
    assert policy.max_delay_sec == 4
    assert policy.jitter == 0.2


def test_json_config_infinite(tmp_path):
    p = tmp_path / "policy.json"
    p.write_text(json.dumps({"max_attempts": "infinite", "multiplier": 1.5}), encoding="utf-8")
    policy = policy_from_dict(load_policy_config(p))
    assert policy.max_attempts is None
    assert policy.multiplier == 1.5


def test_empty_yaml_gives_defaults(tmp_path):
    p = tmp_path / "empty.yml"
    p.write_text("", encoding="utf-8")
    assert policy_from_dict(load_policy_config(p)).max_attempts == 3


def test_unknown_key_rejected():
    with pytest.raises(PolicyError):
        policy_from_dict({"max_attempt": 3})


def test_invalid_values_rejected():
    with pytest.raises(PolicyError):
        policy_from_dict({"jitter": 2})
    with pytest.raises(PolicyError):
        policy_from_dict({"max_attempts": "lots"})


def test_non_mapping_config_rejected(tmp_path):
    p = tmp_path / "policy.yaml"
    p.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(PolicyError):
        load_policy_config(p)


def test_empty_json_gives_defaults(tmp_path):
    p = tmp_path / "policy.json"
    p.write_text("", encoding="utf-8")
    assert load_policy_config(p) == {}
