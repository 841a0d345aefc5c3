import json
import sys

import requests

from retrykit.cli import EXIT_CANCELLED, EXIT_CONFIG_ERROR, EXIT_FAILED, main


FAST = ["--base-delay", "0.001", "--max-delay", "0.002"]


def _counting_script(tmp_path, succeed_on):
    counter = tmp_path / "count.txt"
    code = (
        "import pathlib, sys\n"
        f"p = pathlib.Path({str(counter)!r})\n"
        "n = int(p.read_text()) + 1 if p.exists() else 1\n"
        "p.write_text(str(n))\n"
        f"sys.exit(0 if n >= {succeed_on} else 3)\n"
    )
    return counter, [sys.executable, "-c", code]


def test_run_retries_until_success(tmp_path):
    counter, cmd = _counting_script(tmp_path, succeed_on=3)
    journal = tmp_path / "journal.jsonl"
    rc = main(["run", "--attempts", "5", *FAST, "--journal", str(journal), "--", *cmd])
    assert rc == 0
    assert counter.read_text() == "3"
    lines = [json.loads(x) for x in journal.read_text(encoding="utf-8").splitlines()]
    assert [x["attempt"] for x in lines] == [1, 2]


def test_run_returns_last_exit_code_when_exhausted(tmp_path):
    counter, cmd = _counting_script(tmp_path, succeed_on=99)
    rc = main(["run", "--attempts", "2", *FAST, "--", *cmd])
    assert rc == 3
    assert counter.read_text() == "2"


def test_run_retry_exit_codes_filter(tmp_path):
    counter, cmd = _counting_script(tmp_path, succeed_on=99)
    rc = main(["run", "--attempts", "5", *FAST, "--retry-exit-codes", "1,2", "--", *cmd])
    assert rc == 3
    assert counter.read_text() == "1"


def test_run_timeout_reports_cancelled(tmp_path):
    _, cmd = _counting_script(tmp_path, succeed_on=99)
    rc = main(["run", "--infinite", "--base-delay", "5", "--max-delay", "5", "--timeout", "0.2", "--", *cmd])
    assert rc == EXIT_CANCELLED


def test_invalid_policy_is_config_error(tmp_path):
    _, cmd = _counting_script(tmp_path, succeed_on=1)
    assert main(["run", "--multiplier", "0.5", "--", *cmd]) == EXIT_CONFIG_ERROR


def test_delays_prints_schedule(capsys):
    rc = main(["delays", "--base-delay", "1", "--max-delay", "5", "--count", "4"])
    assert rc == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["1\t1.000", "2\t2.000", "3\t4.000", "4\t5.000"]


def test_delays_reads_config_file(tmp_path, capsys):
    cfg = tmp_path / "p.yaml"
    cfg.write_text("base_delay_sec: 0.5\nmultiplier: 3\nmax_delay_sec: 10\n", encoding="utf-8")
    assert main(["delays", "--config", str(cfg), "--count", "2"]) == 0
    assert capsys.readouterr().out.splitlines() == ["1\t0.500", "2\t1.500"]


def test_malformed_retry_exit_codes_is_config_error(tmp_path):
    counter, cmd = _counting_script(tmp_path, succeed_on=1)
    assert main(["run", "--retry-exit-codes", "1,x", "--", *cmd]) == EXIT_CONFIG_ERROR
    assert not counter.exists()


def test_fetch_http_error_returns_failure(monkeypatch, capsys):
    def _fail(url, policy=None, ctx=None, **kwargs):
        resp = requests.Response()
        resp.status_code = 404
        raise requests.HTTPError("404 Not Found", response=resp)

    monkeypatch.setattr("retrykit.cli.get_text", _fail)
    assert main(["fetch", "https://example.test/missing"]) == EXIT_FAILED
    assert capsys.readouterr().out == ""


def test_fetch_prints_body(monkeypatch, capsys):
    monkeypatch.setattr("retrykit.cli.get_text", lambda url, policy=None, ctx=None: "hello")
    assert main(["fetch", "https://example.test/"]) == 0
    assert capsys.readouterr().out == "hello"
