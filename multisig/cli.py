from __future__ import annotations

"""
multisig.cli
------------

Drive wallets from the command line against a fresh in-memory host.

Commands
--------
demo      Walk through the reference scenarios (optionally timelocked) and print
          the per-step outcomes and the notification log.
run       Execute a scripted scenario from a JSON file (see multisig.scenario)
          and print per-step outcomes plus the final state dump.
config    Print the resolved configuration summary.

Exit codes
----------
0  success
1  the scenario file is missing, unreadable or malformed
2  one or more steps did not match their `expect` outcome

Examples
--------
multisig demo --timelock
multisig run scenario.json --json
MULTISIG_TIMELOCK_DELAY=1h multisig config
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from multisig import __version__
from multisig import logging as mlog
from multisig.config import load_config, summary
from multisig.scenario import (ScenarioError, ScenarioReport, demo_scenario,
                               run_scenario)
from multisig.types.address import short

app = typer.Typer(
    name="multisig",
    add_completion=False,
    no_args_is_help=True,
    help="Multi-party transaction authorization wallets (in-memory host).",
)


# -------------------- output --------------------


def _fmt_fields(d: Dict[str, Any]) -> str:
    parts = []
    for k, v in d.items():
        if k in ("seq", "wallet", "kind"):
            continue
        if isinstance(v, str) and v.startswith("0x") and len(v) == 66:
            v = short(v)
        parts.append(f"{k}={v}")
    return " ".join(parts)


def _print_report(report: ScenarioReport, *, json_out: bool, with_state: bool) -> None:
    data = report.to_dict()
    if json_out:
        if not with_state:
            data.pop("state", None)
        typer.echo(json.dumps(data, indent=2, sort_keys=True))
        return

    typer.echo(f"wallet {data['wallet']}")
    for name, addr in sorted(data["names"].items()):
        typer.echo(f"  {name:<10} {addr}")
    typer.echo("")
    typer.echo("steps:")
    for st in data["steps"]:
        if st["ok"]:
            res = st.get("result")
            outcome = "ok" if res is None else f"ok -> {res}"
        else:
            outcome = f"FAILED {st['error']['code']}: {st['error']['reason']}"
        flag = ""
        if "matched" in st:
            flag = "" if st["matched"] else f"   [expected: {st['expect']}]"
        typer.echo(f"  #{st['index']:<3} {st['op']:<18} {outcome}{flag}")
    typer.echo("")
    typer.echo("events:")
    for ev in data["events"]:
        typer.echo(f"  {ev['seq']:>3} {ev['kind']:<24} {_fmt_fields(ev)}")
    if with_state:
        st = data["state"]
        typer.echo("")
        typer.echo(
            f"state: owners={len(st['owners'])} required={st['required']} balance={st['balance']} "
            f"txs={len(st['transactions'])} changes={len(st['owner_changes'])} policy={st['policy']['kind']}"
        )
    if report.mismatches:
        typer.echo(f"\n{report.mismatches} step(s) did not match expectations", err=True)


def _finish(report: ScenarioReport) -> None:
    if report.mismatches:
        raise typer.Exit(2)


# -------------------- commands --------------------


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", envvar="MULTISIG_LOG_LEVEL", help="Log level."),
    log_json: Optional[bool] = typer.Option(None, "--log-json/--log-text", help="Log format (default: MULTISIG_LOG_FORMAT or auto)."),
) -> None:
    mlog.configure(json=log_json, level=log_level)


@app.command("demo")
def demo(
    timelock: bool = typer.Option(False, "--timelock", help="Use a Timelocked policy."),
    delay: int = typer.Option(3600, "--delay", min=0, help="Timelock delay in seconds."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Run the reference scenarios and print the notification log."""
    report = run_scenario(demo_scenario(timelock=timelock, delay=delay))
    _print_report(report, json_out=json_out, with_state=False)
    _finish(report)


@app.command("run")
def run(
    scenario: Path = typer.Argument(..., help="Scenario JSON file."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Execute a scripted scenario and print outcomes and the final state."""
    try:
        data = json.loads(scenario.read_text(encoding="utf-8"))
        report = run_scenario(data)
    except (OSError, json.JSONDecodeError, ScenarioError) as e:
        typer.echo(f"invalid scenario {scenario}: {e}", err=True)
        raise typer.Exit(1)
    _print_report(report, json_out=json_out, with_state=True)
    _finish(report)


@app.command("config")
def config(
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Print the resolved configuration (environment overrides applied)."""
    try:
        cfg = load_config()
    except ValueError as e:
        typer.echo(f"invalid configuration: {e}", err=True)
        raise typer.Exit(1)
    if json_out:
        typer.echo(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))
    else:
        typer.echo(summary(cfg))


@app.command("version")
def version() -> None:
    typer.echo(__version__)


__all__ = ["app"]


if __name__ == "__main__":  # pragma: no cover
    app()
