from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from multisig import __version__
from multisig.cli import app
from multisig.config import get_config
from multisig.scenario import demo_scenario

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    for k in ("MULTISIG_MAX_OWNERS", "MULTISIG_TIMELOCK_DELAY", "MULTISIG_EXECUTE_GAS",
              "MULTISIG_CALL_GAS_RESERVE", "MULTISIG_GENERIC_REVERT", "MULTISIG_LOG_LEVEL",
              "MULTISIG_LOG_FORMAT"):
        monkeypatch.delenv(k, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()
    # drop the handler bound to the runner's (now closed) stream
    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_multisig", False):
            root.removeHandler(h)


def test_demo_text():
    r = runner.invoke(app, ["demo"])
    assert r.exit_code == 0, r.output
    assert "steps:" in r.stdout
    assert "approvals < required" in r.stdout
    assert "owner_addition" in r.stdout


def test_demo_timelock_json():
    r = runner.invoke(app, ["demo", "--timelock", "--delay", "60", "--json"])
    assert r.exit_code == 0, r.output
    data = json.loads(r.stdout)
    assert data["mismatches"] == 0
    assert "state" not in data
    reasons = [s["error"]["reason"] for s in data["steps"] if not s["ok"]]
    assert "timelock not expired" in reasons
    kinds = [e["kind"] for e in data["events"]]
    assert "timelock_scheduled" in kinds and "execution" in kinds


def test_run_scenario_file(tmp_path: Path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(demo_scenario()), encoding="utf-8")
    r = runner.invoke(app, ["run", str(path), "--json"])
    assert r.exit_code == 0, r.output
    data = json.loads(r.stdout)
    assert data["state"]["required"] == 2
    assert len(data["state"]["owners"]) == 4


def test_run_reports_mismatches_with_exit_2(tmp_path: Path):
    doc = {
        "owners": ["alice", "bob"],
        "required": 1,
        "balance": 1,
        "steps": [{"op": "submit", "caller": "mallory", "to": "x", "value": 1, "expect": "ok"}],
    }
    path = tmp_path / "s.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    r = runner.invoke(app, ["run", str(path)])
    assert r.exit_code == 2
    assert "FAILED UNAUTHORIZED: not owner" in r.stdout


@pytest.mark.parametrize("content", ["{not json", json.dumps({"owners": [], "required": 1}), json.dumps([1, 2])])
def test_run_rejects_bad_files(tmp_path: Path, content: str):
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    r = runner.invoke(app, ["run", str(path)])
    assert r.exit_code == 1


def test_run_missing_file(tmp_path: Path):
    r = runner.invoke(app, ["run", str(tmp_path / "nope.json")])
    assert r.exit_code == 1


def test_config_command(monkeypatch):
    monkeypatch.setenv("MULTISIG_TIMELOCK_DELAY", "2h")
    r = runner.invoke(app, ["config"])
    assert r.exit_code == 0
    assert "timelock=2h" in r.stdout

    r = runner.invoke(app, ["config", "--json"])
    assert json.loads(r.stdout)["timelock_delay"] == 7200


def test_config_command_invalid(monkeypatch):
    monkeypatch.setenv("MULTISIG_MAX_OWNERS", "0")
    r = runner.invoke(app, ["config"])
    assert r.exit_code == 1


def test_version():
    r = runner.invoke(app, ["version"])
    assert r.exit_code == 0
    assert r.stdout.strip() == __version__
