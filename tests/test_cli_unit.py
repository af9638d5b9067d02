# tests/test_cli_unit.py
import json

import pytest

from stun_timing import cli
from stun_timing.transport.base import RequestError
from stun_timing.transport.fake import FakeTransport
from tools import probe_test


def test_fake_host_dry_run(capsys):
    """--host fake scripts every 10th request as lost."""
    assert cli.main(["--host", "fake", "--runs", "20", "--no-progress"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Starting STUN requests...\n")
    assert "Your IP is: 203.0.113.7" in out
    assert "First request time: " in out
    assert "Successful requests: 18" in out
    assert "Failed requests: 2" in out
    assert "Latency Distribution (μs):" in out


def test_progress_bar_goes_to_stderr(capsys):
    assert cli.main(["--runs", "2"], transport=FakeTransport(script=[100, 200])) == 0
    captured = capsys.readouterr()
    assert "2/2" in captured.err
    assert "2/2" not in captured.out


def test_connect_error_exits_one(capsys):
    transport = FakeTransport(connect_error="failed to dial STUN server")
    assert cli.main(["--runs", "3"], transport=transport) == 1
    captured = capsys.readouterr()
    assert "Error: failed to dial STUN server" in captured.err
    assert "Results:" not in captured.out


def test_malformed_host_exits_one(capsys):
    assert cli.main(["--host", "[::1", "--no-progress"]) == 1
    assert "Error:" in capsys.readouterr().err


@pytest.mark.parametrize("host", ["a..b", "x" * 64 + ".example:3478"])
def test_unencodable_hostname_exits_one(capsys, host):
    assert cli.main(["--host", host, "--no-progress"]) == 1
    captured = capsys.readouterr()
    assert "Error: failed to resolve" in captured.err
    assert "Results:" not in captured.out


def test_all_failed_still_exits_zero(capsys):
    transport = FakeTransport(script=[RequestError("timeout")] * 3)
    assert cli.main(["--runs", "3", "--no-progress"], transport=transport) == 0
    out = capsys.readouterr().out
    assert "No successful requests" in out
    assert "Latency Distribution" not in out
    assert "Your IP is" not in out


def test_timeout_flag_reaches_connection(capsys):
    transport = FakeTransport(script=[])
    assert cli.main(["--runs", "1", "--timeout", "250ms", "--no-progress"], transport=transport) == 0
    assert transport.connections[0].requests == 1
    assert "No successful requests" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [["--runs", "0"], ["--runs", "abc"], ["--timeout", "soon"]])
def test_bad_flags_are_usage_errors(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    assert exc.value.code == 2


def test_fake_script_length_matches_runs():
    script = cli.fake_script(30)
    assert len(script) == 30
    assert sum(isinstance(r, RequestError) for r in script) == 3


def test_probe_test_tool_prints_json(capsys):
    assert probe_test.main(["fake:3478"], transport=FakeTransport(script=[1500])) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["server"] == "fake:3478"
    assert payload["error"] is None
    assert payload["mapped_address"] == "203.0.113.7:54321"


def test_probe_test_tool_connect_error(capsys):
    assert probe_test.main(["x"], transport=FakeTransport(connect_error="no route")) == 1
    assert "Error: no route" in capsys.readouterr().err


def test_probe_test_tool_accepts_duration_timeout(capsys):
    transport = FakeTransport(script=[])
    assert probe_test.main(["fake:3478", "250ms"], transport=transport) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["error"] == "timeout after 0.25s"
    assert payload["mapped_address"] is None


def test_probe_test_tool_bad_timeout_is_usage_error(capsys):
    transport = FakeTransport(script=[1500])
    assert probe_test.main(["fake:3478", "soon"], transport=transport) == 2
    assert "Error: invalid duration" in capsys.readouterr().err
    assert transport.connections == []
